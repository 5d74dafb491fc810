"""
Git Repository Resource Provider.

Handles:
- Cloning repositories (no checkout, all branches, remote "origin")
- Fetching updates for clones that already exist
- SSH key selection for private remotes
- Providing a git.Repo handle with per-handle object cache tuning
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from git import Repo
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from commit_ingest.config import ObjectCacheConfig, Settings, settings as default_settings
from commit_ingest.paths import ensure_data_dirs, get_repo_path
from commit_ingest.services.pipeline_exceptions import RepositoryUnavailableError
from commit_ingest.utils.retry import RETRYABLE_EXCEPTIONS, with_retry

logger = logging.getLogger(__name__)


@dataclass
class GitRepoHandle:
    """Handle to an opened repository. Closing it stops the git helper processes."""

    repo: Repo
    path: Path
    url: Optional[str] = None

    def close(self) -> None:
        self.repo.close()

    def __enter__(self) -> "GitRepoHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class RepositoryProvider:
    """
    Provides access to a local clone of a repository.

    Handles:
    - Cloning if needed
    - Fetching all remotes otherwise
    - Applying object cache options to the returned handle
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache_config: Optional[ObjectCacheConfig] = None,
    ):
        self.settings = settings or default_settings
        self.cache_config = cache_config or self.settings.object_cache()

    def load(self, url: str) -> GitRepoHandle:
        """Clone ``url`` into the data directory, or fetch it if already cloned."""
        ensure_data_dirs(self.settings)
        repo_path = get_repo_path(url, self.settings)

        try:
            if repo_path.exists():
                self._fetch_all(repo_path)
            else:
                self._clone_repo(url, repo_path)
        except RETRYABLE_EXCEPTIONS as e:
            raise RepositoryUnavailableError(
                url, f"Cannot clone or fetch {url}: {_describe(e)}"
            ) from e

        return self.open(repo_path, url=url)

    def open(self, repo_path: Path, url: Optional[str] = None) -> GitRepoHandle:
        """Open an existing local repository without touching the network."""
        try:
            repo = Repo(str(repo_path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryUnavailableError(
                url or str(repo_path), f"Not a git repository: {repo_path}"
            ) from e

        repo.git.set_persistent_git_options(c=self.cache_config.as_git_options())
        return GitRepoHandle(repo=repo, path=Path(repo_path), url=url)

    def git_env(self) -> Dict[str, str]:
        """Environment for git subprocesses; a configured key replaces other SSH identities."""
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        key_path = self.settings.SSH_PRIVATE_KEY_PATH
        if key_path:
            key = shlex.quote(str(Path(key_path).expanduser().resolve()))
            env["GIT_SSH_COMMAND"] = f"ssh -i {key} -o IdentitiesOnly=yes"
        return env

    def _retrying(self, func):
        return with_retry(
            max_attempts=self.settings.GIT_MAX_RETRIES,
            min_delay=self.settings.GIT_RETRY_MIN_DELAY,
            max_delay=self.settings.GIT_RETRY_MAX_DELAY,
        )(func)

    def _clone_repo(self, url: str, repo_path: Path) -> None:
        """
        Clone without checkout: only the object database and refs are needed.

        All branches come along as ``origin/*`` remote-tracking refs.
        """
        self._retrying(self._clone_once)(url, repo_path)
        logger.info(f"Successfully cloned {url}")

    def _clone_once(self, url: str, repo_path: Path) -> None:
        logger.info(f"Cloning {url} to {repo_path}")
        try:
            self._run_git(
                ["clone", "--no-checkout", "--origin", "origin", url, str(repo_path)],
                timeout=self.settings.GIT_CLONE_TIMEOUT,
            )
        except RETRYABLE_EXCEPTIONS:
            # Clean up partial clone so the next attempt starts fresh
            if repo_path.exists():
                shutil.rmtree(repo_path, ignore_errors=True)
            raise

    def _fetch_all(self, repo_path: Path) -> None:
        logger.info(f"Fetching all remotes in {repo_path}")
        self._retrying(self._run_git)(
            ["fetch", "--all"],
            cwd=repo_path,
            timeout=self.settings.GIT_FETCH_TIMEOUT,
        )

    def _run_git(
        self, args: List[str], cwd: Optional[Path] = None, timeout: Optional[int] = None
    ) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            env=self.git_env(),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.stdout


def _describe(error: Exception) -> str:
    if isinstance(error, subprocess.CalledProcessError):
        return (error.stderr or error.stdout or str(error)).strip()
    if isinstance(error, subprocess.TimeoutExpired):
        return f"timed out after {error.timeout}s"
    return str(error)
