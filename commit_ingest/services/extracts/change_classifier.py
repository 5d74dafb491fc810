"""
Change classification and object-id resolution for tree-diff entries.
"""

import logging
import re
from typing import Dict, Optional

from git import Repo
from gitdb.exc import AmbiguousObjectName, BadName, BadObject
from gitdb.util import bin_to_hex

from commit_ingest.entities import ChangeKind, FileSide
from commit_ingest.services.extracts.tree_differ import DiffEntry, Side
from commit_ingest.services.pipeline_exceptions import ObjectAccessError, UnknownChangeKindError

logger = logging.getLogger(__name__)

# git's change letters. "T" (type change, e.g. file <-> symlink) is an edit.
CHANGE_KINDS: Dict[str, ChangeKind] = {
    "A": ChangeKind.ADD,
    "M": ChangeKind.EDIT,
    "T": ChangeKind.EDIT,
    "D": ChangeKind.DELETE,
    "R": ChangeKind.RENAME,
    "C": ChangeKind.COPY,
}

# Object type bits of a tree entry mode
MODE_TYPE_MASK = 0o170000
REGULAR_FILE_TYPE = 0o100000
SYMLINK_TYPE = 0o120000
GITLINK_TYPE = 0o160000

_FULL_ID = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")


def normalize_path(path: Optional[str]) -> Optional[str]:
    """Strip a leading slash; the root path "/" is kept as is."""
    if path is None or path == "/":
        return path
    if path.startswith("/"):
        return path[1:]
    return path


def is_blob_mode(mode: int) -> bool:
    return mode != 0 and (mode & MODE_TYPE_MASK) in (REGULAR_FILE_TYPE, SYMLINK_TYPE)


def is_gitlink_mode(mode: int) -> bool:
    return (mode & MODE_TYPE_MASK) == GITLINK_TYPE


def is_complete_id(object_id: str) -> bool:
    return bool(_FULL_ID.match(object_id))


class ChangeClassifier:
    """Maps diff entries to change kinds and resolves their object ids."""

    def __init__(self, repo: Repo):
        self.repo = repo

    @staticmethod
    def classify(entry: DiffEntry) -> ChangeKind:
        kind = CHANGE_KINDS.get(entry.change_type or "")
        if kind is None:
            raise UnknownChangeKindError(entry.change_type, entry.new_path or entry.old_path)
        return kind

    def complete_id(self, object_id: str) -> Optional[str]:
        """
        Resolve a possibly abbreviated id to a full one.

        Unknown or ambiguous abbreviations resolve to None.
        """
        if is_complete_id(object_id):
            return object_id
        try:
            binsha = self.repo.odb.partial_to_complete_sha_hex(object_id)
        except (AmbiguousObjectName, BadName, BadObject, ValueError) as e:
            logger.warning(f"Cannot resolve abbreviated object id {object_id} ({type(e).__name__})")
            return None
        return bin_to_hex(binsha).decode("ascii")

    def resolve_side(self, entry: DiffEntry, side: Side) -> Optional[FileSide]:
        """
        Loadable side of an entry, or None.

        None covers missing sides, non-blob entries (gitlinks, trees) and
        ids that cannot be resolved.
        """
        if not is_blob_mode(entry.mode(side)):
            return None
        object_id = entry.object_id(side)
        if not object_id:
            return None
        full_id = self.complete_id(object_id)
        if full_id is None:
            return None
        return FileSide(id=full_id, path=normalize_path(entry.path(side)))

    def describe_side(self, entry: DiffEntry, side: Side) -> FileSide:
        """
        Side metadata without loading content, as reported by the tree diff.

        Raises ObjectAccessError when the side has no id or its id cannot be
        completed.
        """
        object_id = entry.object_id(side)
        full_id = self.complete_id(object_id) if object_id else None
        if full_id is None:
            raise ObjectAccessError(
                object_id or "", f"Cannot resolve {side.value} object id of {entry.path(side)!r}"
            )
        return FileSide(id=full_id, path=normalize_path(entry.path(side)) or "")
