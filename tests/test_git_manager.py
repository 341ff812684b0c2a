import unittest
import tempfile
import shutil
import os
import git

import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from git_manager import ALL_REFS, GitManager


class GitRepoTestCase(unittest.TestCase):
    """Creates a throw-away repository with a linear history of three commits."""

    def setUp(self):
        self.repo_path = tempfile.mkdtemp()
        self.repo = git.Repo.init(self.repo_path)
        with self.repo.config_writer() as config:
            config.set_value("user", "name", "Test Author")
            config.set_value("user", "email", "test@example.com")
            config.set_value("commit", "gpgsign", "false")

        self.git_manager = GitManager(self.repo_path)
        self.git_manager.initialize()

        self.c1 = self.commit_file("a.txt", "one\n", "First commit")
        self.c2 = self.commit_file("b.txt", "two\n", "Second commit")
        self.c3 = self.commit_file("c.txt", "three\n", "Third commit")
        self.main_branch = self.repo.active_branch.name

    def tearDown(self):
        self.repo.close()
        shutil.rmtree(self.repo_path, ignore_errors=True)

    def commit_file(self, name, content, message):
        path = os.path.join(self.repo_path, name)
        with open(path, "w") as f:
            f.write(content)
        self.repo.index.add([name])
        return self.repo.index.commit(message).hexsha

    def messages(self):
        return [c.message.strip() for c in self.repo.iter_commits(self.main_branch)]


class TestGitManagerRead(GitRepoTestCase):
    def test_initialize_outside_repo(self):
        other = tempfile.mkdtemp()
        try:
            self.assertFalse(GitManager(other).initialize())
            self.assertFalse(GitManager(os.path.join(other, "missing")).initialize())
        finally:
            shutil.rmtree(other)

    def test_get_graph_log_newest_first(self):
        commits = self.git_manager.get_graph_log()
        self.assertEqual([c.hash for c in commits], [self.c3, self.c2, self.c1])
        self.assertEqual(commits[0].message, "Third commit")
        self.assertEqual(commits[0].author, "Test Author")
        self.assertEqual(commits[0].parents, (self.c2,))
        self.assertEqual(commits[-1].parents, ())
        self.assertIn(f"HEAD -> {self.main_branch}", commits[0].refs)
        self.assertTrue(commits[0].is_head)

    def test_get_graph_log_defaults_to_head(self):
        self.repo.create_head("feature", self.c2).checkout()
        side = self.commit_file("side.txt", "side\n", "Side commit")
        self.repo.heads[self.main_branch].checkout()

        head_only = [c.hash for c in self.git_manager.get_graph_log()]
        self.assertEqual(head_only, [self.c3, self.c2, self.c1])

        all_hashes = [c.hash for c in self.git_manager.get_graph_log(ALL_REFS)]
        self.assertIn(side, all_hashes)
        self.assertIn(self.c3, all_hashes)

        main_only = [c.hash for c in self.git_manager.get_graph_log(self.main_branch)]
        self.assertNotIn(side, main_only)
        self.assertEqual(main_only, [self.c3, self.c2, self.c1])

    def test_get_graph_log_max_count(self):
        commits = self.git_manager.get_graph_log(max_count=2)
        self.assertEqual([c.hash for c in commits], [self.c3, self.c2])

    def test_get_graph_log_unknown_branch(self):
        self.assertEqual(self.git_manager.get_graph_log("no-such-branch"), [])

    def test_get_graph_log_without_repo(self):
        self.assertEqual(GitManager(self.repo_path).get_graph_log(), [])

    def test_branches_and_head(self):
        self.repo.create_head("feature", self.c1)
        self.assertEqual(sorted(self.git_manager.get_branches()), sorted([self.main_branch, "feature"]))
        self.assertEqual(self.git_manager.get_current_branch(), self.main_branch)
        self.assertEqual(self.git_manager.get_head_hash(), self.c3)

    def test_detached_head(self):
        self.repo.git.checkout(self.c2)
        self.assertIsNone(self.git_manager.get_current_branch())
        commits = self.git_manager.get_graph_log()
        head = [c for c in commits if c.is_head]
        self.assertEqual([c.hash for c in head], [self.c2])


class TestGitManagerMutations(GitRepoTestCase):
    def test_operations_without_repo(self):
        manager = GitManager(self.repo_path)
        self.assertEqual(manager.cherry_pick(self.c1), "Repository not initialized.")
        self.assertEqual(manager.revert_commit(self.c1), "Repository not initialized.")
        self.assertEqual(manager.reset_branch(self.c1, "soft"), "Repository not initialized.")

    def test_cherry_pick(self):
        self.repo.create_head("feature", self.c1).checkout()
        error = self.git_manager.cherry_pick(self.c3)
        self.assertIsNone(error)
        self.assertEqual(self.repo.head.commit.message.strip(), "Third commit")
        self.assertTrue(os.path.exists(os.path.join(self.repo_path, "c.txt")))
        self.assertFalse(os.path.exists(os.path.join(self.repo_path, "b.txt")))

    def test_cherry_pick_range_oldest_first(self):
        self.repo.create_head("feature", self.c1).checkout()
        error = self.git_manager.cherry_pick_range([self.c3, self.c2])
        self.assertIsNone(error)
        messages = [c.message.strip() for c in self.repo.iter_commits("feature", max_count=3)]
        self.assertEqual(messages, ["Third commit", "Second commit", "First commit"])

    def test_cherry_pick_conflict_returns_error(self):
        self.repo.create_head("feature", self.c2).checkout()
        self.commit_file("c.txt", "conflicting\n", "Conflicting commit")
        error = self.git_manager.cherry_pick(self.c3)
        self.assertIsNotNone(error)
        self.assertTrue(error.startswith("Failed to cherry-pick"))
        self.repo.git.cherry_pick("--abort")

    def test_revert_commit(self):
        error = self.git_manager.revert_commit(self.c2)
        self.assertIsNone(error)
        self.assertEqual(len(self.messages()), 4)
        self.assertFalse(os.path.exists(os.path.join(self.repo_path, "b.txt")))

    def test_reset_modes(self):
        self.assertIsNone(self.git_manager.reset_branch(self.c2, "soft"))
        self.assertEqual(self.repo.head.commit.hexsha, self.c2)
        # soft reset keeps the third commit's file staged
        self.assertTrue(os.path.exists(os.path.join(self.repo_path, "c.txt")))

        self.assertIsNone(self.git_manager.reset_branch(self.c1, "hard"))
        self.assertEqual(self.repo.head.commit.hexsha, self.c1)
        self.assertFalse(os.path.exists(os.path.join(self.repo_path, "b.txt")))

    def test_reset_invalid_mode(self):
        self.assertEqual(self.git_manager.reset_branch(self.c1, "keep"), "Invalid reset mode: keep")
        self.assertEqual(self.repo.head.commit.hexsha, self.c3)

    def test_edit_head_message(self):
        error = self.git_manager.edit_commit_message(self.c3, "Third commit, reworded")
        self.assertIsNone(error)
        self.assertEqual(self.messages()[0], "Third commit, reworded")
        self.assertEqual(self.repo.head.commit.parents[0].hexsha, self.c2)

    def test_edit_older_message(self):
        error = self.git_manager.edit_commit_message(self.c2, "Second commit, reworded")
        self.assertIsNone(error)
        self.assertEqual(self.messages(), ["Third commit", "Second commit, reworded", "First commit"])
        self.assertEqual(self.repo.head.commit.parents[0].parents[0].hexsha, self.c1)

    def test_edit_root_message(self):
        error = self.git_manager.edit_commit_message(self.c1, "Root commit")
        self.assertIsNone(error)
        self.assertEqual(self.messages(), ["Third commit", "Second commit", "Root commit"])

    def test_edit_empty_message(self):
        self.assertEqual(self.git_manager.edit_commit_message(self.c2, "   "), "Message cannot be empty.")
        self.assertEqual(self.repo.head.commit.hexsha, self.c3)

    def test_squash_at_head(self):
        error = self.git_manager.squash_commits([self.c3, self.c2], self.c1, "Second and third")
        self.assertIsNone(error)
        self.assertEqual(self.messages(), ["Second and third", "First commit"])
        for name in ("a.txt", "b.txt", "c.txt"):
            self.assertTrue(os.path.exists(os.path.join(self.repo_path, name)))

    def test_squash_below_head(self):
        c4 = self.commit_file("d.txt", "four\n", "Fourth commit")
        error = self.git_manager.squash_commits([self.c3, self.c2], self.c1, "Second and third")
        self.assertIsNone(error)
        self.assertEqual(self.messages(), ["Fourth commit", "Second and third", "First commit"])
        self.assertNotEqual(self.repo.head.commit.hexsha, c4)
        self.assertFalse(self.repo.is_dirty())

    def test_squash_validation(self):
        self.assertEqual(
            self.git_manager.squash_commits([self.c2, self.c1], None, "msg"),
            "Cannot squash: oldest selected commit has no parent.",
        )
        self.assertEqual(self.git_manager.squash_commits([self.c3, self.c2], self.c1, ""), "Message cannot be empty.")
        self.assertEqual(
            self.git_manager.squash_commits([self.c3], self.c2, "msg"), "Select at least two commits to squash."
        )
        self.assertEqual(self.repo.head.commit.hexsha, self.c3)


class TestGitManagerEmptyRepo(unittest.TestCase):
    def test_unborn_head_has_no_history(self):
        repo_path = tempfile.mkdtemp()
        try:
            git.Repo.init(repo_path).close()
            manager = GitManager(repo_path)
            self.assertTrue(manager.initialize())
            self.assertEqual(manager.get_graph_log(), [])
            self.assertEqual(manager.get_graph_log(ALL_REFS), [])
            manager.repo.close()
        finally:
            shutil.rmtree(repo_path, ignore_errors=True)


class TestGitManagerCommitDetails(GitRepoTestCase):
    def test_details_of_added_file(self):
        details = self.git_manager.get_commit_details(self.c2)
        self.assertEqual(details.hash, self.c2)
        self.assertEqual(details.subject, "Second commit")
        self.assertEqual(details.author, "Test Author <test@example.com>")
        self.assertEqual(len(details.files), 1)
        self.assertEqual(details.files[0].path, "b.txt")
        self.assertEqual((details.files[0].added, details.files[0].removed), (1, 0))
        self.assertIn("+two", details.files[0].lines)

    def test_details_of_modified_file(self):
        sha = self.commit_file("a.txt", "uno\n", "Translate a.txt\n\nSpanish this time.")
        details = self.git_manager.get_commit_details(sha)
        self.assertEqual(details.subject, "Translate a.txt")
        self.assertEqual(details.body, "Spanish this time.")
        self.assertEqual([(f.path, f.added, f.removed) for f in details.files], [("a.txt", 1, 1)])
        self.assertEqual(details.files[0].lines[1:], ("-one", "+uno"))

    def test_details_of_root_commit(self):
        details = self.git_manager.get_commit_details(self.c1)
        self.assertEqual([f.path for f in details.files], ["a.txt"])

    def test_unknown_commit(self):
        self.assertIsNone(self.git_manager.get_commit_details("0" * 40))
        self.assertIsNone(GitManager(self.repo_path).get_commit_details(self.c1))


class TestGitManagerBranches(GitRepoTestCase):
    def test_create_branch_without_checkout(self):
        self.assertIsNone(self.git_manager.create_branch("topic", self.c1, checkout=False))
        self.assertIn("topic", self.git_manager.get_branches())
        self.assertEqual(self.repo.heads["topic"].commit.hexsha, self.c1)
        self.assertEqual(self.git_manager.get_current_branch(), self.main_branch)

    def test_create_branch_and_checkout(self):
        self.assertIsNone(self.git_manager.create_branch("work"))
        self.assertEqual(self.git_manager.get_current_branch(), "work")
        self.assertEqual(self.git_manager.get_head_hash(), self.c3)

    def test_create_branch_validation(self):
        self.assertEqual(self.git_manager.create_branch("  "), "Branch name cannot be empty.")
        self.assertEqual(
            self.git_manager.create_branch(self.main_branch), f"Branch '{self.main_branch}' already exists."
        )
        error = self.git_manager.create_branch("bad..name")
        self.assertTrue(error.startswith("Failed to create branch 'bad..name'"))
        self.assertNotIn("bad..name", self.git_manager.get_branches())

    def test_checkout_branch(self):
        self.repo.create_head("feature", self.c1)
        self.assertIsNone(self.git_manager.checkout_branch("feature"))
        self.assertEqual(self.git_manager.get_current_branch(), "feature")
        self.assertEqual(self.git_manager.get_head_hash(), self.c1)
        # already there
        self.assertIsNone(self.git_manager.checkout_branch("feature"))

    def test_checkout_missing_branch(self):
        error = self.git_manager.checkout_branch("no-such-branch")
        self.assertTrue(error.startswith("Failed to checkout 'no-such-branch'"))
        self.assertEqual(self.git_manager.get_current_branch(), self.main_branch)

    def test_delete_merged_branch(self):
        self.repo.create_head("old", self.c1)
        self.assertIsNone(self.git_manager.delete_branch("old"))
        self.assertNotIn("old", self.git_manager.get_branches())

    def test_delete_unmerged_branch_needs_force(self):
        self.repo.create_head("feature", self.c2).checkout()
        self.commit_file("side.txt", "side\n", "Side commit")
        self.repo.heads[self.main_branch].checkout()

        error = self.git_manager.delete_branch("feature")
        self.assertTrue(error.startswith("Failed to delete branch 'feature'"))
        self.assertIn("feature", self.git_manager.get_branches())

        self.assertIsNone(self.git_manager.delete_branch("feature", force=True))
        self.assertNotIn("feature", self.git_manager.get_branches())

    def test_delete_current_branch(self):
        self.assertEqual(
            self.git_manager.delete_branch(self.main_branch),
            f"Cannot delete the checked out branch '{self.main_branch}'.",
        )

    def test_branch_operations_without_repo(self):
        manager = GitManager(self.repo_path)
        self.assertEqual(manager.checkout_branch("x"), "Repository not initialized.")
        self.assertEqual(manager.create_branch("x"), "Repository not initialized.")
        self.assertEqual(manager.delete_branch("x"), "Repository not initialized.")


if __name__ == '__main__':
    unittest.main()
