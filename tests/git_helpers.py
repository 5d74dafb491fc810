"""Builds throwaway git repositories with the git CLI for tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from git import Repo

Content = Union[str, bytes]


class ScratchRepo:
    """A real repository in a temp directory, driven through ``git``."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else Path(tempfile.mkdtemp())
        self._clock = 1_700_000_000
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.set_identity("Test User", "test@example.com")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "core.autocrlf", "false")

    def cleanup(self) -> None:
        shutil.rmtree(self.path, ignore_errors=True)

    def git(self, *args: str, env: Optional[Dict[str, str]] = None, input: Optional[bytes] = None) -> str:
        full_env = os.environ.copy()
        full_env.update(env or {})
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            check=True,
            capture_output=True,
            env=full_env,
            input=input,
        )
        return result.stdout.decode("utf-8").strip()

    def set_identity(self, name: str, email: str) -> None:
        self.git("config", "user.name", name)
        self.git("config", "user.email", email)

    def write(self, rel_path: str, content: Content) -> None:
        target = self.path / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)

    def remove(self, rel_path: str) -> None:
        self.git("rm", "-q", rel_path)

    def commit(
        self,
        message: str,
        files: Optional[Dict[str, Content]] = None,
        author_time: Optional[int] = None,
        committer_time: Optional[int] = None,
        tz: str = "+0000",
        stage: bool = True,
    ) -> str:
        """Write ``files``, stage everything and commit with deterministic dates."""
        for rel_path, content in (files or {}).items():
            self.write(rel_path, content)
        if stage:
            self.git("add", "-A")

        self._clock += 60
        author_time = author_time if author_time is not None else self._clock
        committer_time = committer_time if committer_time is not None else author_time
        self.git(
            "commit",
            "-q",
            "--allow-empty",
            "-m",
            message,
            env={
                "GIT_AUTHOR_DATE": f"{author_time} {tz}",
                "GIT_COMMITTER_DATE": f"{committer_time} {tz}",
            },
        )
        return self.rev_parse("HEAD")

    def rev_parse(self, rev: str) -> str:
        return self.git("rev-parse", rev)

    def checkout(self, branch: str, create: bool = False) -> None:
        if create:
            self.git("checkout", "-q", "-b", branch)
        else:
            self.git("checkout", "-q", branch)

    def merge(self, branch: str, message: str) -> str:
        self._clock += 60
        stamp = f"{self._clock} +0000"
        self.git(
            "merge",
            "-q",
            "--no-ff",
            "-m",
            message,
            branch,
            env={"GIT_AUTHOR_DATE": stamp, "GIT_COMMITTER_DATE": stamp},
        )
        return self.rev_parse("HEAD")

    def hash_object(self, content: bytes) -> str:
        """Store ``content`` as a blob and return its id."""
        return self.git("hash-object", "-w", "--stdin", input=content)

    def add_gitlink(self, rel_path: str, commit_sha: str) -> None:
        """Stage a submodule entry (mode 160000) without a real submodule."""
        self.git("update-index", "--add", "--cacheinfo", f"160000,{commit_sha},{rel_path}")

    def open(self) -> Repo:
        return Repo(str(self.path))
