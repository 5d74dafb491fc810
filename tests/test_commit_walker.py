import unittest

from commit_ingest.services.extracts.commit_walker import CommitWalker, branch_refs, branches
from git_helpers import ScratchRepo


class TestCommitWalker(unittest.TestCase):
    def setUp(self):
        self.scratch = ScratchRepo()
        self.repo = None

    def tearDown(self):
        if self.repo is not None:
            self.repo.close()
        self.scratch.cleanup()

    def _walk(self):
        self.repo = self.scratch.open()
        return [c.hexsha for c in CommitWalker(self.repo).walk()]

    def test_linear_history_newest_first(self):
        c1 = self.scratch.commit("C1", {"f.txt": "1\n"})
        c2 = self.scratch.commit("C2", {"f.txt": "2\n"})
        c3 = self.scratch.commit("C3", {"f.txt": "3\n"})

        self.assertEqual(self._walk(), [c3, c2, c1])

    def test_all_branches_each_commit_once(self):
        base = self.scratch.commit("base", {"f.txt": "base\n"})
        self.scratch.checkout("feature", create=True)
        f1 = self.scratch.commit("feature 1", {"feature.txt": "1\n"})
        f2 = self.scratch.commit("feature 2", {"feature.txt": "2\n"})
        self.scratch.checkout("main")
        m1 = self.scratch.commit("main 1", {"main.txt": "1\n"})

        walked = self._walk()

        self.assertEqual(sorted(walked), sorted([base, f1, f2, m1]))
        self.assertEqual(len(walked), len(set(walked)))
        # Children before parents
        self.assertLess(walked.index(f2), walked.index(f1))
        self.assertLess(walked.index(f1), walked.index(base))
        self.assertLess(walked.index(m1), walked.index(base))

    def test_merge_history_topological(self):
        base = self.scratch.commit("base", {"f.txt": "base\n"})
        self.scratch.checkout("feature", create=True)
        feature = self.scratch.commit("feature", {"feature.txt": "1\n"})
        self.scratch.checkout("main")
        main = self.scratch.commit("main", {"main.txt": "1\n"})
        merge = self.scratch.merge("feature", "merge")

        walked = self._walk()

        self.assertEqual(walked[0], merge)
        self.assertEqual(walked[-1], base)
        self.assertEqual(set(walked), {base, feature, main, merge})

    def test_repository_without_branches_yields_nothing(self):
        self.assertEqual(self._walk(), [])

    def test_walk_is_lazy(self):
        for i in range(5):
            self.scratch.commit(f"C{i}", {"f.txt": f"{i}\n"})
        self.repo = self.scratch.open()

        walker = CommitWalker(self.repo).walk()
        first = next(walker)
        walker.close()

        self.assertEqual(first.hexsha, self.scratch.rev_parse("HEAD"))

    def test_branch_tips(self):
        base = self.scratch.commit("base", {"f.txt": "base\n"})
        self.scratch.checkout("feature", create=True)
        tip = self.scratch.commit("feature", {"feature.txt": "1\n"})
        self.scratch.checkout("main")
        self.repo = self.scratch.open()

        self.assertEqual(sorted(branches(self.repo)), sorted([base, tip]))
        self.assertEqual(
            sorted(branch_refs(self.repo)), ["refs/heads/feature", "refs/heads/main"]
        )
