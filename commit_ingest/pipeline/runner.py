"""
Pipeline entry points.

``iter_commit_records`` turns an opened repository into a lazy stream of
commit records; ``ingest_repository`` does the same for a remote URL,
cloning or fetching it first and closing the handle when the stream ends.
"""

import logging
from typing import Iterator, Optional, Union

from git import Repo

from commit_ingest.config import ObjectCacheConfig, Settings, settings as default_settings
from commit_ingest.entities import CommitRecord
from commit_ingest.pipeline.resources.git_repo import GitRepoHandle, RepositoryProvider
from commit_ingest.services.extracts.commit_record_builder import CommitRecordBuilder
from commit_ingest.services.extracts.commit_walker import CommitWalker
from commit_ingest.services.pipeline_exceptions import IngestError

logger = logging.getLogger(__name__)


def iter_commit_records(
    source: Union[Repo, GitRepoHandle],
    settings: Optional[Settings] = None,
) -> Iterator[CommitRecord]:
    """
    Yield one record per commit reachable from any branch, in topological order.

    The first failing commit aborts the stream.
    """
    repo = source.repo if isinstance(source, GitRepoHandle) else source
    builder = CommitRecordBuilder(repo, settings or default_settings)

    count = 0
    for commit in CommitWalker(repo).walk():
        try:
            record = builder.build(commit)
        except IngestError as e:
            logger.error(f"Failed to build record for commit {commit.hexsha}: {e}")
            raise
        count += 1
        yield record

    logger.info(f"Extracted {count} commit records from {repo.git_dir}")


def ingest_repository(
    url: str,
    settings: Optional[Settings] = None,
    cache_config: Optional[ObjectCacheConfig] = None,
) -> Iterator[CommitRecord]:
    """
    Clone (or fetch) ``url`` and stream its commit records.

    The repository handle stays open while the stream is consumed and is
    closed once it is exhausted, fails, or is abandoned.
    """
    settings = settings or default_settings
    provider = RepositoryProvider(settings, cache_config)
    with provider.load(url) as handle:
        yield from iter_commit_records(handle, settings)
