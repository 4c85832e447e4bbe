"""Shelf browse exception classes.

Errors in this package are never fatal to the host page: they are raised
close to the failure and caught at coordinator boundaries, where they are
logged and the affected operation is abandoned.
"""

from __future__ import annotations

from typing import Optional


class ShelfBrowseError(Exception):
    """Base exception for all shelf browse errors."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.cause = cause

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {super().__str__()}"
        return super().__str__()


class MissingElementError(ShelfBrowseError):
    """Raised when a required view element is absent (structural failure)."""

    def __init__(self, description: str, operation: Optional[str] = None) -> None:
        super().__init__(f"missing {description}", operation)
        self.description = description


class TransportError(ShelfBrowseError):
    """Raised when a network request fails or returns an error status."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None, payload: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause=cause)
        self.url = url
        self.status_code = status_code
        self.payload = payload


class ConfigurationError(ShelfBrowseError):
    """Raised when a configuration value cannot be interpreted."""
