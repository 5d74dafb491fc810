"""
Resource Providers - repositories the pipeline reads from.
"""

from commit_ingest.pipeline.resources.git_repo import GitRepoHandle, RepositoryProvider

__all__ = ["GitRepoHandle", "RepositoryProvider"]
