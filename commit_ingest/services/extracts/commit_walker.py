"""
History traversal over every branch of a repository.
"""

import logging
from typing import Iterator, List

from git import Commit, Head, RemoteReference, Repo
from git.refs import Reference

logger = logging.getLogger(__name__)


def _branch_references(repo: Repo) -> Iterator[Reference]:
    # Local and remote-tracking branches; symbolic "origin/HEAD" only aliases one of them
    for ref in repo.references:
        if isinstance(ref, (Head, RemoteReference)) and not ref.path.endswith("/HEAD"):
            yield ref


def branch_refs(repo: Repo) -> List[str]:
    """Full names of all branch refs, e.g. ``refs/remotes/origin/main``."""
    return [ref.path for ref in _branch_references(repo)]


def branches(repo: Repo) -> List[str]:
    """Distinct tip commit ids of all branches."""
    tips: List[str] = []
    for ref in _branch_references(repo):
        sha = ref.commit.hexsha
        if sha not in tips:
            tips.append(sha)
    return tips


class CommitWalker:
    """
    Lazily enumerates every commit reachable from any branch.

    Each commit is yielded once, children before parents (``--topo-order``).
    Abandoning the iterator early is fine; the ``rev-list`` process is reaped
    with it.
    """

    def __init__(self, repo: Repo):
        self.repo = repo

    def walk(self) -> Iterator[Commit]:
        refs = branch_refs(self.repo)
        if not refs:
            logger.info(f"No branches in {self.repo.git_dir}, nothing to walk")
            return
        logger.debug(f"Walking {len(refs)} branch refs")
        yield from self.repo.iter_commits(refs, topo_order=True)
