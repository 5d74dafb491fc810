"""
Tree-level change sets between a commit and its first parent.

Diffs are computed by GitPython (``git diff-tree -r -M``, plus ``-C`` for
copy detection) and flattened into ``DiffEntry`` values so the rest of the
pipeline does not depend on GitPython's ``Diff`` objects.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from git import Commit, Repo
from git.diff import Diff
from git.exc import GitCommandError
from git.objects import Tree
from gitdb.util import hex_to_bin

from commit_ingest.services.pipeline_exceptions import ObjectAccessError

logger = logging.getLogger(__name__)

# Empty tree SHA for diffing root commits
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class Side(str, Enum):
    OLD = "old"
    NEW = "new"


@dataclass(frozen=True)
class DiffEntry:
    """One raw tree-diff entry: git's change letter plus both sides."""

    change_type: Optional[str]
    old_mode: int
    new_mode: int
    old_id: Optional[str]
    new_id: Optional[str]
    old_path: Optional[str]
    new_path: Optional[str]

    @classmethod
    def from_diff(cls, diff: Diff) -> "DiffEntry":
        return cls(
            change_type=diff.change_type,
            old_mode=diff.a_mode or 0,
            new_mode=diff.b_mode or 0,
            old_id=diff.a_blob.hexsha if diff.a_blob is not None else None,
            new_id=diff.b_blob.hexsha if diff.b_blob is not None else None,
            old_path=diff.a_path,
            new_path=diff.b_path,
        )

    def mode(self, side: Side) -> int:
        return self.old_mode if side is Side.OLD else self.new_mode

    def object_id(self, side: Side) -> Optional[str]:
        return self.old_id if side is Side.OLD else self.new_id

    def path(self, side: Side) -> Optional[str]:
        return self.old_path if side is Side.OLD else self.new_path


class TreeDiffer:
    """Computes the changed paths of a commit against its first parent."""

    def __init__(self, repo: Repo, detect_copies: bool = True):
        self.repo = repo
        self.detect_copies = detect_copies

    def empty_tree(self) -> Tree:
        return Tree(self.repo, hex_to_bin(EMPTY_TREE_SHA))

    def diff_trees(self, parent: Optional[Commit], commit: Commit) -> List[DiffEntry]:
        """
        Diff ``parent``'s tree (or the empty tree) against ``commit``'s tree.

        Rename detection is always on; copy detection follows ``detect_copies``.
        """
        before = parent.tree if parent is not None else self.empty_tree()
        # -C must follow -M on the command line; git keeps the last of the two
        kwargs = {"M": True, "C": True} if self.detect_copies else {}
        try:
            diffs = before.diff(commit.tree, **kwargs)
        except (GitCommandError, ValueError) as e:
            raise ObjectAccessError(
                commit.hexsha, f"Cannot diff trees of commit {commit.hexsha}: {e}"
            ) from e
        return [DiffEntry.from_diff(d) for d in diffs]

    def diff_commit(self, commit: Commit) -> List[DiffEntry]:
        """First-parent diff; merges never show their other parents' changes."""
        parent = commit.parents[0] if commit.parents else None
        if parent is None:
            logger.debug(f"{commit.hexsha[:8]} is a root commit, diffing against the empty tree")
        return self.diff_trees(parent, commit)
