"""
Commit ingestion: structured per-commit change records extracted from git
repositories.
"""

from commit_ingest.entities import (
    ChangedFile,
    ChangeKind,
    CommitRecord,
    ContentType,
    Edit,
    FileSide,
    LineCount,
)
from commit_ingest.pipeline import ingest_repository, iter_commit_records
from commit_ingest.services.extracts import calculate_loc
from commit_ingest.services.pipeline_exceptions import (
    IngestError,
    ObjectAccessError,
    RepositoryUnavailableError,
    UnknownChangeKindError,
)

__all__ = [
    "ChangeKind",
    "ChangedFile",
    "CommitRecord",
    "ContentType",
    "Edit",
    "FileSide",
    "IngestError",
    "LineCount",
    "ObjectAccessError",
    "RepositoryUnavailableError",
    "UnknownChangeKindError",
    "calculate_loc",
    "ingest_repository",
    "iter_commit_records",
]
