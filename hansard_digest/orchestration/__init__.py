"""
Orchestration package.

Batch scheduling of the per-debate pipeline.
"""

from .debate_pipeline import DebatePipeline

__all__ = ["DebatePipeline"]
