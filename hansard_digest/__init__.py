"""
Hansard Digest.

Processes UK Hansard debates into classified, scored and AI-analysed
records, and keeps a weekly semantic index of recent debates.
"""

__version__ = "0.1.0"
