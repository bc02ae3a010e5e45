"""
Debate processing package.

Classification, statistics, interest scoring, division reconciliation and
record/document rendering for individual debates.
"""

from .classifier import classify_debate, get_debate_type, ineligibility_reason
from .divisions import DivisionReconciler, merge_division_questions
from .scoring import InterestScore, calculate_interest_score
from .stats import DebateStats, calculate_stats

__all__ = [
    "classify_debate",
    "get_debate_type",
    "ineligibility_reason",
    "DivisionReconciler",
    "merge_division_questions",
    "InterestScore",
    "calculate_interest_score",
    "DebateStats",
    "calculate_stats",
]
