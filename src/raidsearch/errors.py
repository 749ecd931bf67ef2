"""Error taxonomy for search, projection and download operations."""

from __future__ import annotations


class RaidSearchError(RuntimeError):
    """Base class for errors raised by the RAiD search services."""


class CriteriaValidationError(RaidSearchError, ValueError):
    """Raised when every search criterion is blank."""

    def __init__(self, message: str = "At least one search criterion is required") -> None:
        super().__init__(message)


class EndpointFailure(RaidSearchError):
    """A single search endpoint failed or returned malformed data."""

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class DownloadFailure(RaidSearchError):
    """A single artifact could not be retrieved or saved."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class RenderingFault(RaidSearchError):
    """The results container was not available for rendering."""
