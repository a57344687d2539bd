"""
HTTP Transport Layer.

This package handles all communication with remote servers and defines the
response types the orchestrator works with.
"""

from .client import HttpTransport
from .response import ApiResponse, FileBody

__all__ = ["ApiResponse", "FileBody", "HttpTransport"]
