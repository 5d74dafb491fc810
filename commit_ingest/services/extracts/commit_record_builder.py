"""
Builds one CommitRecord per commit: metadata, first-parent changed files,
and a line diff for every changed file whose sides are both text.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from git import Commit, Repo

from commit_ingest.config import Settings, settings as default_settings
from commit_ingest.entities import (
    ChangedFile,
    ChangeKind,
    CommitRecord,
    ContentType,
    Edit,
    FileSide,
    LineCount,
)
from commit_ingest.services.extracts.blob_loader import BlobLoader
from commit_ingest.services.extracts.change_classifier import ChangeClassifier, is_gitlink_mode
from commit_ingest.services.extracts.line_diff import LineDiffEngine
from commit_ingest.services.extracts.tree_differ import DiffEntry, Side, TreeDiffer

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    """Trimmed and case-folded, so one person maps to one address."""
    return (email or "").strip().casefold()


def calculate_loc(edits: Optional[Iterable[Edit]]) -> LineCount:
    """Total added and removed lines of a diff; no diff counts as zero."""
    added = 0
    removed = 0
    for edit in edits or []:
        added += len(edit.added)
        removed += len(edit.removed)
    return LineCount(added=added, removed=removed)


def _message_text(message) -> str:
    if isinstance(message, bytes):
        return message.decode("utf-8", errors="replace")
    return message or ""


class CommitRecordBuilder:
    """
    Assembles commit records from a repository handle.

    Failures while reading objects propagate; no partial record is returned.
    """

    def __init__(self, repo: Repo, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.repo = repo
        self.tree_differ = TreeDiffer(repo, detect_copies=settings.DETECT_COPIES)
        self.classifier = ChangeClassifier(repo)
        self.blob_loader = BlobLoader(repo, settings)
        self.line_diff = LineDiffEngine()

    def build(self, commit: Commit) -> CommitRecord:
        changed_files = [
            self.build_changed_file(entry) for entry in self.tree_differ.diff_commit(commit)
        ]
        return CommitRecord(
            id=commit.hexsha,
            author=commit.author.name or "",
            email=normalize_email(commit.author.email),
            timestamp=commit.authored_datetime,
            between_time=commit.committed_date - commit.authored_date,
            message=_message_text(commit.message).strip(),
            parents=[parent.hexsha for parent in commit.parents],
            changed_files=changed_files,
        )

    def build_changed_file(self, entry: DiffEntry) -> ChangedFile:
        """
        Turn one tree-diff entry into a ChangedFile.

        The diff is omitted when either side is a gitlink, when a side the
        kind requires cannot be resolved, or when either side is binary. A
        side the kind does not have (old side of an add, new side of a
        delete) is diffed as empty text.
        """
        kind = self.classifier.classify(entry)
        old_side = self._required_side(entry, kind, Side.OLD)
        new_side = self._required_side(entry, kind, Side.NEW)

        diff: Optional[List[Edit]] = None
        if self._is_diffable(entry, kind, old_side, new_side):
            old_side, old_content = self._load(old_side)
            new_side, new_content = self._load(new_side)
            if not _is_binary(old_side) and not _is_binary(new_side):
                diff = self.line_diff.diff(old_content, new_content)

        if kind.has_old_file and old_side is None:
            old_side = self.classifier.describe_side(entry, Side.OLD)
        if kind.has_new_file and new_side is None:
            new_side = self.classifier.describe_side(entry, Side.NEW)

        return ChangedFile(
            kind=kind,
            old_file=old_side,
            new_file=new_side,
            diff=diff,
            loc=calculate_loc(diff),
        )

    def _required_side(self, entry: DiffEntry, kind: ChangeKind, side: Side) -> Optional[FileSide]:
        has_side = kind.has_old_file if side is Side.OLD else kind.has_new_file
        if not has_side:
            return None
        return self.classifier.resolve_side(entry, side)

    def _is_diffable(
        self,
        entry: DiffEntry,
        kind: ChangeKind,
        old_side: Optional[FileSide],
        new_side: Optional[FileSide],
    ) -> bool:
        if is_gitlink_mode(entry.old_mode) or is_gitlink_mode(entry.new_mode):
            return False
        if kind.has_old_file and old_side is None:
            logger.debug(f"No loadable old side for {entry.old_path}, skipping diff")
            return False
        if kind.has_new_file and new_side is None:
            logger.debug(f"No loadable new side for {entry.new_path}, skipping diff")
            return False
        return True

    def _load(self, side: Optional[FileSide]) -> Tuple[Optional[FileSide], bytes]:
        if side is None:
            return None, b""
        return self.blob_loader.load(side.id, side.path)


def _is_binary(side: Optional[FileSide]) -> bool:
    return side is not None and side.type == ContentType.BINARY
