"""
Helpers that turn sizes and durations into short human-readable strings.
"""

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(bytes_size: int) -> str:
    """Formats a byte count, e.g. '145.3 MB'."""
    if bytes_size <= 0:
        return "0 B"
    size = float(bytes_size)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    """Formats seconds as e.g. '2h 34m 12s'; a zero duration renders as '0s'."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_ttl(seconds: float) -> str:
    """Formats a TTL in seconds, falling back to milliseconds below one second."""
    if 0 < seconds < 1:
        return f"{int(seconds * 1000)}ms"
    return format_duration(seconds)
