import logging
import os
import sys
import tempfile
from typing import List, Optional

import git
from git import GitCommandError

from git_graph_data import Commit, CommitDetails
from git_log_parser import COMMIT_DETAILS_FORMAT, GIT_LOG_FORMAT, parse_commit_details, parse_git_log_output

REBASE_TODO_SCRIPT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "rebase_todo.py")

RESET_MODES = ["soft", "mixed", "hard"]

# Branch filter that shows every local and remote ref instead of HEAD only
ALL_REFS = "--all"


def _error_details(e: GitCommandError) -> str:
    return e.stderr.strip() if e.stderr else str(e)


class GitManager:
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self.repo: Optional[git.Repo] = None

    def initialize(self) -> bool:
        """初始化 Git 仓库"""
        try:
            self.repo = git.Repo(self.repo_path)
            return True
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            return False

    def get_branches(self) -> List[str]:
        """获取所有本地分支"""
        if not self.repo:
            return []
        return [branch.name for branch in self.repo.branches]

    def get_current_branch(self) -> Optional[str]:
        """获取当前分支，HEAD 分离时返回 None"""
        if not self.repo:
            return None
        try:
            return self.repo.active_branch.name
        except TypeError:
            # detached HEAD
            return None

    def get_head_hash(self) -> Optional[str]:
        if not self.repo:
            return None
        try:
            return self.repo.head.commit.hexsha
        except ValueError:
            # no commits yet
            return None

    def get_graph_log(self, filter_branch: Optional[str] = None, max_count: Optional[int] = None) -> List[Commit]:
        """获取用于绘制提交图的历史

        参数：
            filter_branch: 只显示该分支的历史，None 表示 HEAD 的历史，ALL_REFS 表示所有分支
            max_count: 最多返回的提交数量，None 表示不限制
        """
        if not self.repo:
            return []
        if not filter_branch and self.get_head_hash() is None:
            # unborn HEAD, nothing to show yet
            return []

        args = ([filter_branch] if filter_branch else []) + ["--date-order", f"--pretty=format:{GIT_LOG_FORMAT}"]
        if max_count:
            args.append(f"--max-count={max_count}")

        try:
            log_output = self.repo.git.log(*args)
        except GitCommandError as e:
            logging.error("获取提交历史失败：%s", _error_details(e))
            return []

        commits = parse_git_log_output(log_output)
        logging.debug("Loaded %d commits (branch filter: %s)", len(commits), filter_branch or "HEAD")
        return commits

    def get_commit_details(self, commit_hash: str) -> Optional[CommitDetails]:
        """获取提交的完整信息和补丁，失败时返回 None"""
        if not self.repo:
            return None
        try:
            output = self.repo.git.show(commit_hash, f"--format={COMMIT_DETAILS_FORMAT}", "--patch", "--no-color")
        except GitCommandError as e:
            logging.error("获取提交 %s 详情失败：%s", commit_hash[:7], _error_details(e))
            return None
        return parse_commit_details(output)

    def checkout_branch(self, branch_name: str) -> Optional[str]:
        """切换到指定分支

        返回：
            None: 成功
            str: 失败时的错误信息
        """
        if not self.repo:
            return "Repository not initialized."
        if branch_name == self.get_current_branch():
            return None
        try:
            self.repo.git.checkout(branch_name)
            logging.info("Checked out %s", branch_name)
            return None
        except GitCommandError as e:
            logging.error("切换分支 %s 失败：%s", branch_name, _error_details(e))
            return f"Failed to checkout '{branch_name}': {_error_details(e)}"

    def create_branch(self, branch_name: str, start_point: Optional[str] = None, checkout: bool = True) -> Optional[str]:
        """新建分支

        参数：
            branch_name: 新分支名称
            start_point: 起点提交或分支，None 表示 HEAD
            checkout: 创建后是否切换过去
        """
        if not self.repo:
            return "Repository not initialized."
        branch_name = branch_name.strip() if branch_name else ""
        if not branch_name:
            return "Branch name cannot be empty."
        if branch_name in self.get_branches():
            return f"Branch '{branch_name}' already exists."

        args = [branch_name] + ([start_point] if start_point else [])
        try:
            # git validates the ref name itself
            self.repo.git.branch(*args)
            logging.info("Created branch %s at %s", branch_name, start_point or "HEAD")
        except GitCommandError as e:
            logging.error("创建分支 %s 失败：%s", branch_name, _error_details(e))
            return f"Failed to create branch '{branch_name}': {_error_details(e)}"

        if checkout:
            return self.checkout_branch(branch_name)
        return None

    def delete_branch(self, branch_name: str, force: bool = False) -> Optional[str]:
        """删除本地分支，force 为 False 时未合并的分支会被 git 拒绝"""
        if not self.repo:
            return "Repository not initialized."
        if branch_name == self.get_current_branch():
            return f"Cannot delete the checked out branch '{branch_name}'."
        try:
            self.repo.git.branch("-D" if force else "-d", branch_name)
            logging.info("Deleted branch %s", branch_name)
            return None
        except GitCommandError as e:
            logging.error("删除分支 %s 失败：%s", branch_name, _error_details(e))
            return f"Failed to delete branch '{branch_name}': {_error_details(e)}"

    def cherry_pick(self, commit_hash: str) -> Optional[str]:
        """Cherry-pick 单个提交

        返回：
            None: 成功
            str: 失败时的错误信息
        """
        return self.cherry_pick_range([commit_hash])

    def cherry_pick_range(self, hashes: List[str]) -> Optional[str]:
        """按从旧到新的顺序 cherry-pick 多个提交，hashes 为从新到旧的顺序"""
        if not self.repo:
            return "Repository not initialized."
        if not hashes:
            return None

        try:
            self.repo.git.cherry_pick(*reversed(hashes))
            logging.info("Cherry-picked %d commit(s)", len(hashes))
            return None
        except GitCommandError as e:
            logging.error("Cherry-pick failed: %s", _error_details(e))
            return f"Failed to cherry-pick: {_error_details(e)}"

    def revert_commit(self, commit_hash: str) -> Optional[str]:
        """还原指定提交"""
        if not self.repo:
            return "Repository not initialized."
        try:
            self.repo.git.revert(commit_hash, "--no-edit")
            logging.info("Reverted %s", commit_hash[:7])
            return None
        except GitCommandError as e:
            logging.error("Revert of %s failed: %s", commit_hash[:7], _error_details(e))
            return f"Failed to revert commit: {_error_details(e)}"

    def reset_branch(self, commit_hash: str, mode: str) -> Optional[str]:
        """重置当前分支到指定的提交。

        参数：
            commit_hash: 目标提交的哈希值。
            mode: 重置模式 ('soft', 'mixed', 'hard')。

        返回：
            None: 成功。
            str: 失败时的错误信息。
        """
        if not self.repo:
            return "Repository not initialized."

        if mode not in RESET_MODES:
            return f"Invalid reset mode: {mode}"

        try:
            self.repo.git.reset(f"--{mode}", commit_hash)
            logging.info("Reset (%s) to %s", mode, commit_hash[:7])
            return None
        except GitCommandError as e:
            logging.exception("重置到 %s 失败", commit_hash)
            return f"Failed to reset to {commit_hash[:7]}: {_error_details(e)}"

    def edit_commit_message(self, commit_hash: str, new_message: str) -> Optional[str]:
        """修改提交信息

        HEAD 直接 amend，其他提交通过脚本化的 rebase -i 执行 reword。
        """
        if not self.repo:
            return "Repository not initialized."
        if not new_message or not new_message.strip():
            return "Message cannot be empty."

        if commit_hash == self.get_head_hash():
            try:
                self.repo.git.commit("--amend", "-m", new_message)
                return None
            except GitCommandError as e:
                logging.error("Amend failed: %s", _error_details(e))
                return f"Failed to edit commit message: {_error_details(e)}"

        return self._run_scripted_rebase(
            self._rebase_base(commit_hash), "reword", [commit_hash], new_message, "edit commit message"
        )

    def squash_commits(self, hashes: List[str], parent_hash: Optional[str], new_message: str) -> Optional[str]:
        """将连续的多个提交压缩为一个

        参数：
            hashes: 选中的提交，从新到旧
            parent_hash: 最旧的选中提交的父提交
            new_message: 压缩后的提交信息
        """
        if not self.repo:
            return "Repository not initialized."
        if not parent_hash:
            return "Cannot squash: oldest selected commit has no parent."
        if not new_message or not new_message.strip():
            return "Message cannot be empty."
        if len(hashes) < 2:
            return "Select at least two commits to squash."

        if hashes[0] == self.get_head_hash():
            # Selection ends at HEAD, a soft reset keeps all changes staged
            try:
                self.repo.git.reset("--soft", parent_hash)
                self.repo.git.commit("-m", new_message)
                logging.info("Squashed %d commits onto %s", len(hashes), parent_hash[:7])
                return None
            except GitCommandError as e:
                logging.error("Squash failed: %s", _error_details(e))
                return f"Failed to squash: {_error_details(e)}"

        # The oldest selected commit stays `pick`, everything newer is folded into it
        return self._run_scripted_rebase(parent_hash, "squash", hashes[:-1], new_message, "squash")

    def _rebase_base(self, commit_hash: str) -> str:
        if not self.repo.commit(commit_hash).parents:
            return "--root"
        return f"{commit_hash}~1"

    def _run_scripted_rebase(
        self, base: str, action: str, hashes: List[str], new_message: str, description: str
    ) -> Optional[str]:
        fd, message_path = tempfile.mkstemp(prefix="git-graph-msg-", suffix=".txt")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(new_message + "\n")

        python = f'"{sys.executable}" "{REBASE_TODO_SCRIPT}"'
        sequence_editor = f"{python} {action} {' '.join(hashes)}"
        message_editor = f'{python} message "{message_path}"'

        try:
            with self.repo.git.custom_environment(GIT_SEQUENCE_EDITOR=sequence_editor, GIT_EDITOR=message_editor):
                self.repo.git.rebase("-i", base)
            logging.info("Rebase (%s) of %d commit(s) finished", action, len(hashes))
            return None
        except GitCommandError as e:
            logging.error("Rebase (%s) failed: %s", action, _error_details(e))
            self._abort_rebase()
            return f"Failed to {description}: {_error_details(e)}"
        finally:
            os.remove(message_path)

    def _abort_rebase(self):
        try:
            self.repo.git.rebase("--abort")
        except GitCommandError as e:
            logging.warning("git rebase --abort failed: %s", _error_details(e))
