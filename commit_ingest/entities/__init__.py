from .commit_record import (
    ChangedFile,
    CommitRecord,
    Edit,
    FileSide,
    Line,
    LineCount,
)

# Shared enums
from .enums import ChangeKind, ContentType

__all__ = [
    "ChangedFile",
    "CommitRecord",
    "Edit",
    "FileSide",
    "Line",
    "LineCount",
    "ChangeKind",
    "ContentType",
]
