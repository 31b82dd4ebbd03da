"""
Error taxonomy for the catalog sync flow.

- UpstreamError: HTTP failure or malformed body from the PPV API
- NotFoundError: requested sport or document is not available
- WriteError: the publisher could not persist a generation
"""
from typing import Optional


class CatalogSyncError(Exception):
    """Base class for all catalog sync errors."""


class UpstreamError(CatalogSyncError):
    """Raised when the upstream API fails or returns an unusable body."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(CatalogSyncError):
    """Raised when a sport or published document cannot be located."""


class WriteError(CatalogSyncError):
    """Raised when publishing a generation to storage fails."""
