"""
Media Download Layer.

This package streams file-typed responses to the local downloads directory
and reports progress while doing so.
"""

from .downloader import (
    DownloadComplete,
    DownloadEvent,
    DownloadFailed,
    DownloadProgress,
    Downloader,
)

__all__ = [
    "DownloadComplete",
    "DownloadEvent",
    "DownloadFailed",
    "DownloadProgress",
    "Downloader",
]
