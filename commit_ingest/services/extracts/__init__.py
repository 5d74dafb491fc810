"""
Extraction services: from a commit to its structured record.
"""

from commit_ingest.services.extracts.blob_loader import BlobLoader
from commit_ingest.services.extracts.change_classifier import ChangeClassifier
from commit_ingest.services.extracts.commit_record_builder import (
    CommitRecordBuilder,
    calculate_loc,
    normalize_email,
)
from commit_ingest.services.extracts.commit_walker import CommitWalker, branches
from commit_ingest.services.extracts.line_diff import LineDiffEngine
from commit_ingest.services.extracts.tree_differ import DiffEntry, TreeDiffer

__all__ = [
    "BlobLoader",
    "ChangeClassifier",
    "CommitRecordBuilder",
    "CommitWalker",
    "DiffEntry",
    "LineDiffEngine",
    "TreeDiffer",
    "branches",
    "calculate_loc",
    "normalize_email",
]
