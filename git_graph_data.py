# git_graph_data.py

from dataclasses import dataclass


@dataclass(frozen=True)
class Commit:
    hash: str
    short_hash: str
    message: str
    author: str
    date: str
    parents: tuple[str, ...] = ()
    refs: tuple[str, ...] = ()  # e.g. ('HEAD -> main', 'origin/main', 'tag: v1.0')

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_head(self) -> bool:
        return any(ref == "HEAD" or ref.startswith("HEAD -> ") for ref in self.refs)

    def __repr__(self) -> str:
        return (
            f"Commit(hash='{self.hash[:7]}', "
            f"parents={[p[:7] for p in self.parents]}, "
            f"refs={list(self.refs)}, "
            f"message='{self.message[:20]}...')"
        )


@dataclass(frozen=True)
class RowGraphData:
    """Precomputed drawing data for a single row of the graph."""

    passthrough_lanes: tuple[int, ...] = ()
    has_incoming: bool = False
    has_outgoing: bool = False
    merge_incoming_from_lanes: tuple[int, ...] = ()
    merge_outgoing_to_lanes: tuple[int, ...] = ()


@dataclass(frozen=True)
class FileDiff:
    """One file of a commit's patch; `lines` holds the hunks, starting at the first @@ line."""

    path: str
    added: int = 0
    removed: int = 0
    lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommitDetails:
    hash: str
    author_name: str
    author_email: str
    author_date: str
    commit_date: str
    subject: str
    body: str = ""
    files: tuple[FileDiff, ...] = ()

    @property
    def author(self) -> str:
        return f"{self.author_name} <{self.author_email}>"
