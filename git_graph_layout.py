# git_graph_layout.py

from typing import Optional, Sequence

from git_graph_data import Commit, RowGraphData


def assign_lanes(commits: Sequence[Commit]) -> dict[str, int]:
    """
    Assigns a horizontal lane to every commit.
    The input `commits` list is expected to be ordered newest first (git log --date-order),
    so every parent appears after all of its children.
    A lane reserved by a child is handed to the parent when the parent is reached.
    Commits nobody reserved a lane for start a new lane at `next_lane`.
    Parents that are not part of the list never get a lane.
    """
    commit_lanes: dict[str, int] = {}
    reserved_lanes: dict[str, int] = {}  # parent sha -> lane promised by a child
    next_lane = 0

    for commit in commits:
        if commit.hash in reserved_lanes:
            assigned_lane = reserved_lanes.pop(commit.hash)
        else:
            assigned_lane = next_lane
            next_lane += 1

        commit_lanes[commit.hash] = assigned_lane

        if not commit.parents:
            continue

        # First parent continues this commit's lane, unless another child got there first
        first_parent = commit.parents[0]
        if first_parent not in reserved_lanes:
            reserved_lanes[first_parent] = assigned_lane

        # Merge parents take the lowest lane no pending reservation uses
        for parent in commit.parents[1:]:
            if parent in reserved_lanes:
                continue
            used_lanes = set(reserved_lanes.values())
            new_lane = 0
            while new_lane in used_lanes:
                new_lane += 1
            reserved_lanes[parent] = new_lane
            next_lane = max(next_lane, new_lane + 1)

    return commit_lanes


def build_row_data(commits: Sequence[Commit], commit_lanes: dict[str, int]) -> list[RowGraphData]:
    """
    Precomputes the geometry of every row in one pass so the painter never
    has to look at other rows.

    For each edge from a commit at row i to a parent at row j > i, the parent's
    lane is drawn straight through rows i+1..j-1, and when the two lanes differ a
    curve is recorded on both ends (outgoing on row i, incoming on row j).
    Parents missing from the list, or not strictly below the child, are skipped.
    Passthrough lanes keep the order the edges were first seen in, top to bottom.
    """
    n = len(commits)
    if n == 0:
        return []

    commit_index = {commit.hash: i for i, commit in enumerate(commits)}

    # sha -> rows of the commits that list it as a parent
    child_rows: dict[str, list[int]] = {}
    for i, commit in enumerate(commits):
        for parent in commit.parents:
            child_rows.setdefault(parent, []).append(i)

    # dicts as ordered sets
    passthrough: list[dict[int, None]] = [{} for _ in range(n)]
    has_incoming = [False] * n
    has_outgoing = [False] * n
    merge_incoming: list[list[int]] = [[] for _ in range(n)]
    merge_outgoing: list[list[int]] = [[] for _ in range(n)]

    for i, commit in enumerate(commits):
        lane = commit_lanes[commit.hash]
        has_incoming[i] = any(child < i for child in child_rows.get(commit.hash, ()))

        for parent in commit.parents:
            j = commit_index.get(parent)
            if j is None or j <= i:
                continue

            has_outgoing[i] = True
            parent_lane = commit_lanes[parent]

            for r in range(i + 1, j):
                passthrough[r].setdefault(parent_lane)

            if parent_lane != lane:
                merge_outgoing[i].append(parent_lane)
                merge_incoming[j].append(lane)

    rows = []
    for i, commit in enumerate(commits):
        own_lane = commit_lanes[commit.hash]
        rows.append(
            RowGraphData(
                passthrough_lanes=tuple(lane for lane in passthrough[i] if lane != own_lane),
                has_incoming=has_incoming[i],
                has_outgoing=has_outgoing[i],
                merge_incoming_from_lanes=tuple(merge_incoming[i]),
                merge_outgoing_to_lanes=tuple(merge_outgoing[i]),
            )
        )
    return rows


def is_consecutive_run(commits: Sequence[Commit], sorted_indices: Sequence[int]) -> bool:
    """Whether the selected rows (ascending, newest first) form a linear single-parent chain."""
    for newer_idx, older_idx in zip(sorted_indices, sorted_indices[1:]):
        newer = commits[newer_idx]
        older = commits[older_idx]
        if len(newer.parents) != 1 or newer.parents[0] != older.hash:
            return False
    return True


def lane_count(commit_lanes: dict[str, int]) -> int:
    # At least one lane so an empty graph still has a width
    if not commit_lanes:
        return 1
    return max(commit_lanes.values()) + 1


def find_head_commit(commits: Sequence[Commit]) -> Optional[Commit]:
    for commit in commits:
        if commit.is_head:
            return commit
    return commits[0] if commits else None
