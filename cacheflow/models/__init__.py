"""
Data Models Layer.

This package contains the configuration model, the outcome events emitted for
each request, and the session statistics.
"""

from .config import CacheFlowConfig
from .outcome import Failure, FileSuccess, Loading, Outcome, Success
from .stats import CacheStats

__all__ = [
    "CacheFlowConfig",
    "CacheStats",
    "Failure",
    "FileSuccess",
    "Loading",
    "Outcome",
    "Success",
]
