"""
Exception classes for lyricsync.

Exception Hierarchy:
    LyricSyncError (base)
        ConfigError - Configuration file issues
        CacheError - Storage backend issues
        ProviderError - Lyrics/metadata provider request failures
        LyricsParseError - Malformed lyrics documents
        TrackTypeError - Caller asked for something the active item cannot provide

Only TrackTypeError is meant to reach callers. Everything else is raised by
a component and recovered by the layer above it (providers raise, the
resolution pipeline logs and carries on with "no result from this source").
"""

from typing import Optional


class LyricSyncError(Exception):
    """
    Base exception for all lyricsync errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (track id, url, status).
    """

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(LyricSyncError):
    """
    Raised when the configuration cannot be loaded, saved or validated.

    Example:
        raise ConfigError(
            "Failed to save config",
            details={'file_path': '/path/to/config.yaml'}
        )
    """
    pass


class CacheError(LyricSyncError):
    """
    Raised by storage backends when reading or writing fails.

    The cache stores never let this escape `get_item`: a failing backend is
    treated as a miss. Writes log it and continue.
    """
    pass


class ProviderError(LyricSyncError):
    """
    Raised when a remote provider request fails.

    This is a NON-CRITICAL error. The resolution pipeline catches it and
    treats the provider as having returned nothing.

    Attributes:
        status: HTTP status code when the server answered, None otherwise.
        is_transport_error: True when no HTTP response was received at all
                            (connection refused, DNS failure, timeout).

    Example:
        raise ProviderError(
            "Failed to load lyrics for track",
            details={'track_id': '4uLU6hMCjMI75M1A2tKUQC'},
            status=503
        )
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        status: Optional[int] = None,
        is_transport_error: bool = False
    ) -> None:
        super().__init__(message, details)
        self.status = status
        self.is_transport_error = is_transport_error


class LyricsParseError(LyricSyncError):
    """
    Raised when a whole lyrics document is unusable (unknown type, not an object).

    Individual malformed lines or records are skipped instead of raising.
    """
    pass


class TrackTypeError(LyricSyncError):
    """
    Raised when an operation is requested for an item that cannot support it.

    This signals a caller contract violation, for example asking for the
    duration of a DJ narration item. It is the only lyricsync error that is
    expected to propagate.
    """
    pass
