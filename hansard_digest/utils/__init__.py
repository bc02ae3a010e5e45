"""Rate limiting, retry policy and text cleanup helpers."""

from .rate_limiter import RateLimiter
from .retry import http_retrying, is_transient
from .text import clean_html, clean_speaker_name, word_count

__all__ = [
    "RateLimiter",
    "http_retrying",
    "is_transient",
    "clean_html",
    "clean_speaker_name",
    "word_count",
]
