"""Error types raised by the data-access layer"""
from typing import Optional


class UpstreamError(RuntimeError):
    """Raised when the Spotify API call fails or returns an unusable body.

    ``message`` carries the upstream's own error text whenever the response
    included one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CacheError(RuntimeError):
    """Raised by a cache backend. Never escapes the cache store."""
