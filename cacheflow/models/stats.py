"""
Dataclass for tracking per-session cache and download statistics.
"""

import time
from dataclasses import dataclass, field


@dataclass
class CacheStats:
    """Tracks statistics for a CacheFlow session."""

    cache_hits: int = 0
    cache_misses: int = 0
    cache_writes: int = 0
    cache_write_failures: int = 0
    requests_failed: int = 0
    files_downloaded: int = 0
    total_bytes_downloaded: int = 0
    _started_at: float = field(default_factory=time.monotonic, repr=False)

    def record_lookup(self, is_hit: bool) -> None:
        """Callback handed to the cache store to count hits (True) and misses."""
        if is_hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def record_download(self, size_bytes: int) -> None:
        self.files_downloaded += 1
        self.total_bytes_downloaded += size_bytes

    @property
    def hit_ratio(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self._started_at
