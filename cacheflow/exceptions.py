"""
Defines the error taxonomy used to classify every failure surfaced by the library.
"""

import asyncio
import json
import sqlite3
from enum import Enum

import aiohttp
from pydantic import ValidationError


class ErrorType(Enum):
    """Categories of failure, each with a default human-readable message."""

    NETWORK_ERROR = "A network error occurred."
    PARSE_ERROR = "Response is not a valid JSON format."
    CACHE_ERROR = "An unexpected cache error occurred."
    UNKNOWN_ERROR = "An unknown error occurred."

    @property
    def default_message(self) -> str:
        return self.value


class CacheFlowError(Exception):
    """Base exception for all library-specific errors."""

    error_type = ErrorType.UNKNOWN_ERROR

    def __init__(self, message: str | None = None):
        self.message = message or self.error_type.default_message
        super().__init__(self.message)


class NetworkError(CacheFlowError):
    """Raised for transport failures and non-successful HTTP statuses."""

    error_type = ErrorType.NETWORK_ERROR

    def __init__(self, message: str | None = None, status: int | None = None):
        super().__init__(message)
        self.status = status


class ParseError(CacheFlowError):
    """Raised when a payload cannot be serialized or deserialized."""

    error_type = ErrorType.PARSE_ERROR


class CacheError(CacheFlowError):
    """Raised when the underlying cache storage fails."""

    error_type = ErrorType.CACHE_ERROR


class UnknownError(CacheFlowError):
    """Raised for anything that fits no other category."""

    error_type = ErrorType.UNKNOWN_ERROR


class ConfigurationError(CacheFlowError):
    """Raised for issues related to configuration loading or validation."""


_NETWORK_EXCEPTIONS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)
_PARSE_EXCEPTIONS = (json.JSONDecodeError, ValidationError, UnicodeDecodeError)


def classify_exception(exc: BaseException) -> CacheFlowError:
    """
    Maps an arbitrary exception onto the error taxonomy.

    Library errors pass through untouched; everything else is wrapped in the
    category matching its type, keeping the original message when it has one.
    """
    if isinstance(exc, CacheFlowError):
        return exc

    message = str(exc) or None
    if isinstance(exc, _NETWORK_EXCEPTIONS):
        error: CacheFlowError = NetworkError(message)
    elif isinstance(exc, _PARSE_EXCEPTIONS):
        error = ParseError(message)
    elif isinstance(exc, sqlite3.Error):
        error = CacheError(message)
    else:
        error = UnknownError(message)

    error.__cause__ = exc
    return error
