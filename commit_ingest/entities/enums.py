"""
Shared enums for entities.

This module contains enums that are used across multiple entity files.
"""

from enum import Enum


class ChangeKind(str, Enum):
    """Semantic kind of a changed file between a commit and its first parent."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    RENAME = "rename"
    COPY = "copy"

    @property
    def has_old_file(self) -> bool:
        return self is not ChangeKind.ADD

    @property
    def has_new_file(self) -> bool:
        return self is not ChangeKind.DELETE


class ContentType(str, Enum):
    """Content classification of a loaded blob."""

    TEXT = "text"
    BINARY = "binary"
