"""
Adapters package for Hansard Digest.

This package contains the records source adapters that implement
the BaseAdapter interface.
"""

from .base_adapter import BaseAdapter
from .hansard_adapter import HansardAdapter

__all__ = [
    "BaseAdapter",
    "HansardAdapter",
]
