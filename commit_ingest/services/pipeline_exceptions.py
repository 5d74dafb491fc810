"""Custom exceptions for the commit ingestion pipeline."""
from __future__ import annotations

from typing import Optional


class IngestError(Exception):
    """Base exception for ingestion failures."""


class ObjectAccessError(IngestError):
    """Raised when a git object cannot be opened, read or resolved."""

    def __init__(self, object_id: str, message: Optional[str] = None) -> None:
        self.object_id = object_id
        super().__init__(message or f"Cannot access object {object_id}")


class UnknownChangeKindError(IngestError):
    """Raised when a tree-diff entry reports an unsupported change type."""

    def __init__(self, change_type: Optional[str], path: Optional[str] = None) -> None:
        self.change_type = change_type
        self.path = path
        super().__init__(f"Unsupported change type {change_type!r} for {path!r}")


class RepositoryUnavailableError(IngestError):
    """Raised when a repository cannot be cloned or fetched."""

    def __init__(self, url: str, message: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message or f"Repository unavailable: {url}")
