"""
Centralized path definitions for data storage.

All paths are relative to settings.DATA_DIR as the root.
"""

import hashlib
from pathlib import Path
from typing import Optional

from commit_ingest.config import Settings, settings as default_settings


def get_data_dir(settings: Optional[Settings] = None) -> Path:
    """Base data directory (absolute)."""
    return Path((settings or default_settings).DATA_DIR).resolve()


def get_repos_dir(settings: Optional[Settings] = None) -> Path:
    """Directory holding the local (no-checkout) clones."""
    return get_data_dir(settings) / "repos"


def repo_dir_name(url: str) -> str:
    """
    Directory name for a repository URL: last path segment plus the URL's md5.

    The hash keeps two repositories with the same name apart.
    """
    segments = [s for s in url.split("/") if s.strip()]
    name = segments[-1] if segments else "repo"
    digest = hashlib.md5(url.encode("utf-8")).hexdigest()
    return f"{name}_{digest}"


def get_repo_path(url: str, settings: Optional[Settings] = None) -> Path:
    """Get local clone path for a repository URL."""
    return get_repos_dir(settings) / repo_dir_name(url)


def ensure_data_dirs(settings: Optional[Settings] = None) -> None:
    """Create all required data directories if they don't exist."""
    for d in [get_data_dir(settings), get_repos_dir(settings)]:
        d.mkdir(parents=True, exist_ok=True)
