from commit_ingest.pipeline.runner import ingest_repository, iter_commit_records

__all__ = ["ingest_repository", "iter_commit_records"]
