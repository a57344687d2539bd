"""
CacheFlow: a client-side request/response caching layer with TTL-based
freshness and automatic streaming of downloadable content.
"""

from cacheflow.api import ApiResponse, FileBody, HttpTransport
from cacheflow.exceptions import (
    CacheError,
    CacheFlowError,
    ConfigurationError,
    ErrorType,
    NetworkError,
    ParseError,
    UnknownError,
)
from cacheflow.listeners import CallbackListener, ResultListener
from cacheflow.models import (
    CacheFlowConfig,
    CacheStats,
    Failure,
    FileSuccess,
    Loading,
    Outcome,
    Success,
)
from cacheflow.session import CacheFlow, initialize

__version__ = "1.0.0"

__all__ = [
    "ApiResponse",
    "CacheError",
    "CacheFlow",
    "CacheFlowConfig",
    "CacheFlowError",
    "CacheStats",
    "CallbackListener",
    "ConfigurationError",
    "ErrorType",
    "Failure",
    "FileBody",
    "FileSuccess",
    "HttpTransport",
    "Loading",
    "NetworkError",
    "Outcome",
    "ParseError",
    "ResultListener",
    "Success",
    "UnknownError",
    "initialize",
]
