"""
State of one open graph view: the repository, the branch filter and the
latest computed graph.

A refresh rebuilds the whole snapshot (commits, lanes, row geometry) and swaps
it in one assignment, so readers either see the old graph or the new one.
Row indices only mean something against the snapshot they were taken from:
the view resolves a selection to commit hashes on the snapshot it displays,
and every mutation here takes hashes, never rows.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from git_graph_data import Commit, CommitDetails, RowGraphData
from git_graph_layout import assign_lanes, build_row_data, find_head_commit, is_consecutive_run, lane_count
from git_manager import ALL_REFS, GitManager
from settings import Settings
from utils import timeit

SQUASH = "squash"
CHERRY_PICK_RANGE = "cherry_pick_range"

NOT_CONSECUTIVE_ERROR = "Only a consecutive run of commits can be squashed."


@dataclass(frozen=True)
class SquashTarget:
    hashes: tuple[str, ...]  # newest first
    parent_hash: Optional[str]


@dataclass(frozen=True)
class GraphSnapshot:
    commits: tuple[Commit, ...] = ()
    lanes: dict[str, int] = field(default_factory=dict)
    rows: tuple[RowGraphData, ...] = ()
    head_hash: Optional[str] = None
    lane_count: int = 1

    @property
    def is_empty(self) -> bool:
        return not self.commits

    def lane_of(self, row: int) -> int:
        return self.lanes[self.commits[row].hash]

    def hashes_at(self, sorted_indices: Sequence[int]) -> tuple[str, ...]:
        return tuple(self.commits[i].hash for i in sorted_indices)

    def range_actions(self, sorted_indices: Sequence[int]) -> tuple[str, ...]:
        """Actions offered for a multi-row selection; squash needs a linear chain."""
        if is_consecutive_run(self.commits, sorted_indices):
            return (SQUASH, CHERRY_PICK_RANGE)
        return (CHERRY_PICK_RANGE,)

    def squash_target(self, sorted_indices: Sequence[int]) -> Optional[SquashTarget]:
        """The commits to fold and the commit they land on, or None when the rows are not a chain."""
        if not sorted_indices or not is_consecutive_run(self.commits, sorted_indices):
            return None
        oldest = self.commits[sorted_indices[-1]]
        return SquashTarget(
            hashes=self.hashes_at(sorted_indices),
            parent_hash=oldest.parents[0] if oldest.parents else None,
        )


@timeit
def build_snapshot(commits: Sequence[Commit]) -> GraphSnapshot:
    lanes = assign_lanes(commits)
    rows = build_row_data(commits, lanes)
    head = find_head_commit(commits)
    return GraphSnapshot(
        commits=tuple(commits),
        lanes=lanes,
        rows=tuple(rows),
        head_hash=head.hash if head else None,
        lane_count=lane_count(lanes),
    )


class GraphSession:
    def __init__(self, repo_path: str, settings: Settings, git_manager: Optional[GitManager] = None):
        self.repo_path = repo_path
        self.settings = settings
        self.git_manager = git_manager or GitManager(repo_path)
        self.branch_filter: Optional[str] = settings.get_branch_filter()
        self.snapshot = GraphSnapshot()
        self._listeners: list[Callable[[GraphSnapshot], None]] = []
        self._refresh_lock = threading.Lock()

    def open(self) -> bool:
        if not self.git_manager.initialize():
            logging.warning("%s is not a git repository", self.repo_path)
            return False
        if self.branch_filter and self.branch_filter != ALL_REFS:
            if self.branch_filter not in self.git_manager.get_branches():
                logging.info("Branch %s not found, showing HEAD", self.branch_filter)
                self.branch_filter = None
        self.settings.add_recent_folder(self.repo_path)
        return True

    def close(self):
        self._listeners.clear()
        self.snapshot = GraphSnapshot()
        if self.git_manager.repo:
            self.git_manager.repo.close()
            self.git_manager.repo = None

    def add_listener(self, callback: Callable[[GraphSnapshot], None]):
        self._listeners.append(callback)

    def set_branch_filter(self, branch: Optional[str]):
        """None 表示 HEAD 的历史，ALL_REFS 表示所有分支"""
        self.branch_filter = branch or None
        self.settings.set_branch_filter(self.branch_filter)

    def refresh(self) -> GraphSnapshot:
        """重新读取提交历史并整体替换当前的图"""
        with self._refresh_lock:
            commits = self.git_manager.get_graph_log(self.branch_filter, self.settings.get_max_count())
            snapshot = build_snapshot(commits)
            self.snapshot = snapshot
            logging.info("Graph refreshed: %d commits in %d lanes", len(snapshot.commits), snapshot.lane_count)

        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def commit_details(self, commit_hash: str) -> Optional[CommitDetails]:
        return self.git_manager.get_commit_details(commit_hash)

    # --- mutations, each refreshes the graph when it succeeds ---

    def _after_mutation(self, error: Optional[str]) -> Optional[str]:
        if error is None:
            self.refresh()
        return error

    def cherry_pick(self, commit_hash: str) -> Optional[str]:
        return self._after_mutation(self.git_manager.cherry_pick(commit_hash))

    def cherry_pick_commits(self, hashes: Sequence[str]) -> Optional[str]:
        return self._after_mutation(self.git_manager.cherry_pick_range(list(hashes)))

    def revert(self, commit_hash: str) -> Optional[str]:
        return self._after_mutation(self.git_manager.revert_commit(commit_hash))

    def reset(self, commit_hash: str, mode: str) -> Optional[str]:
        return self._after_mutation(self.git_manager.reset_branch(commit_hash, mode))

    def edit_message(self, commit_hash: str, new_message: str) -> Optional[str]:
        return self._after_mutation(self.git_manager.edit_commit_message(commit_hash, new_message))

    def squash(self, target: Optional[SquashTarget], new_message: str) -> Optional[str]:
        if target is None:
            return NOT_CONSECUTIVE_ERROR
        return self._after_mutation(
            self.git_manager.squash_commits(list(target.hashes), target.parent_hash, new_message)
        )

    def checkout_branch(self, branch_name: str) -> Optional[str]:
        return self._after_mutation(self.git_manager.checkout_branch(branch_name))

    def create_branch(self, branch_name: str, start_point: Optional[str] = None, checkout: bool = True) -> Optional[str]:
        return self._after_mutation(self.git_manager.create_branch(branch_name, start_point, checkout))

    def delete_branch(self, branch_name: str, force: bool = False) -> Optional[str]:
        error = self.git_manager.delete_branch(branch_name, force)
        if error is None and self.branch_filter == branch_name:
            self.set_branch_filter(None)
        return self._after_mutation(error)
