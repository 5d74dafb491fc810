import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from commit_ingest.config import ObjectCacheConfig, Settings
from commit_ingest.paths import get_repo_path
from commit_ingest.pipeline import ingest_repository
from commit_ingest.pipeline.resources import GitRepoHandle, RepositoryProvider
from commit_ingest.services.extracts.commit_walker import CommitWalker
from commit_ingest.services.extracts.commit_record_builder import CommitRecordBuilder
from commit_ingest.services.pipeline_exceptions import ObjectAccessError, RepositoryUnavailableError
from git_helpers import ScratchRepo


class TestRepositoryProvider(unittest.TestCase):
    def setUp(self):
        self.source = ScratchRepo()
        self.data_dir = Path(tempfile.mkdtemp())
        self.settings = Settings(
            DATA_DIR=str(self.data_dir),
            GIT_MAX_RETRIES=2,
            GIT_RETRY_MIN_DELAY=0,
            GIT_RETRY_MAX_DELAY=0,
        )
        self.url = str(self.source.path)

    def tearDown(self):
        self.source.cleanup()
        shutil.rmtree(self.data_dir, ignore_errors=True)

    def test_clone_without_checkout(self):
        c1 = self.source.commit("C1", {"a.txt": "x\n"})

        with RepositoryProvider(self.settings).load(self.url) as handle:
            self.assertIsInstance(handle, GitRepoHandle)
            self.assertEqual(handle.path, get_repo_path(self.url, self.settings))
            self.assertEqual(handle.url, self.url)
            self.assertFalse((handle.path / "a.txt").exists())
            self.assertIn("refs/remotes/origin/main", [r.path for r in handle.repo.references])
            self.assertEqual([c.hexsha for c in CommitWalker(handle.repo).walk()], [c1])

    def test_existing_clone_is_fetched(self):
        self.source.commit("C1", {"a.txt": "x\n"})
        provider = RepositoryProvider(self.settings)
        provider.load(self.url).close()

        c2 = self.source.commit("C2", {"a.txt": "x\ny\n"})
        with provider.load(self.url) as handle:
            self.assertEqual(handle.repo.commit("refs/remotes/origin/main").hexsha, c2)

    def test_all_branches_are_cloned(self):
        self.source.commit("base", {"a.txt": "x\n"})
        self.source.checkout("feature", create=True)
        feature = self.source.commit("feature", {"b.txt": "y\n"})
        self.source.checkout("main")

        with RepositoryProvider(self.settings).load(self.url) as handle:
            walked = [c.hexsha for c in CommitWalker(handle.repo).walk()]

        self.assertIn(feature, walked)

    def test_clone_failure(self):
        missing = str(self.data_dir / "does-not-exist")

        with self.assertRaises(RepositoryUnavailableError) as ctx:
            RepositoryProvider(self.settings).load(missing)

        self.assertEqual(ctx.exception.url, missing)
        self.assertFalse(get_repo_path(missing, self.settings).exists())

    def test_open_rejects_non_repository(self):
        with self.assertRaises(RepositoryUnavailableError):
            RepositoryProvider(self.settings).open(self.data_dir)

    def test_cache_config_applies_to_handle(self):
        self.source.commit("C1", {"a.txt": "x\n"})
        cache = ObjectCacheConfig(delta_base_cache_limit=0, big_file_threshold=4096)

        with RepositoryProvider(self.settings, cache).open(self.source.path) as handle:
            self.assertEqual(handle.repo.git.config("core.bigFileThreshold"), "4096")
            self.assertEqual(handle.repo.git.config("core.deltaBaseCacheLimit"), "0")

    def test_ssh_key_replaces_identities(self):
        settings = Settings(SSH_PRIVATE_KEY_PATH="/keys/deploy key")
        env = RepositoryProvider(settings).git_env()

        self.assertIn("-o IdentitiesOnly=yes", env["GIT_SSH_COMMAND"])
        self.assertIn("-i '/keys/deploy key'", env["GIT_SSH_COMMAND"])

    def test_no_ssh_command_without_key(self):
        env = RepositoryProvider(Settings(SSH_PRIVATE_KEY_PATH=None)).git_env()
        self.assertEqual(env.get("GIT_SSH_COMMAND"), os.environ.get("GIT_SSH_COMMAND"))

    def test_ingest_repository_streams_records(self):
        c1 = self.source.commit("C1", {"a.txt": "x\n"})
        c2 = self.source.commit("C2", {"a.txt": "x\ny\n"})

        records = list(ingest_repository(self.url, self.settings))

        self.assertEqual([r.id for r in records], [c2, c1])
        self.assertEqual(records[0].changed_files[0].loc.added, 1)

    def test_failed_commit_aborts_stream_and_closes_handle(self):
        self.source.commit("C1", {"a.txt": "x\n"})
        error = ObjectAccessError("f" * 40)

        with patch.object(CommitRecordBuilder, "build", side_effect=error), patch.object(
            GitRepoHandle, "close", autospec=True
        ) as close:
            with self.assertRaises(ObjectAccessError):
                list(ingest_repository(self.url, self.settings))

        close.assert_called_once()

    def test_abandoned_stream_closes_handle(self):
        for i in range(3):
            self.source.commit(f"C{i}", {"a.txt": f"{i}\n"})

        with patch.object(GitRepoHandle, "close", autospec=True) as close:
            stream = ingest_repository(self.url, self.settings)
            next(stream)
            close.assert_not_called()
            stream.close()

        close.assert_called_once()
