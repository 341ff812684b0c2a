# git_log_parser.py

from datetime import datetime
from typing import Optional

from git_graph_data import Commit, CommitDetails, FileDiff

# Delimiters for parsing git log output
FIELD_SEP = "\x01"
ENTRY_SEP = "\x02"

# Git log format string
# %H: commit hash
# %h: abbreviated hash
# %P: parent hashes (space separated)
# %an: author name
# %aI: author date (ISO 8601 strict)
# %D: decorations without the surrounding parentheses
# %s: subject
GIT_LOG_FORMAT = f"%H{FIELD_SEP}%h{FIELD_SEP}%P{FIELD_SEP}%an{FIELD_SEP}%aI{FIELD_SEP}%D{FIELD_SEP}%s{ENTRY_SEP}"

FIELD_COUNT = 7

# Header for `git show`: hash, author name, author email, author date,
# committer date, subject, body. The patch follows ENTRY_SEP.
COMMIT_DETAILS_FORMAT = f"%H{FIELD_SEP}%an{FIELD_SEP}%ae{FIELD_SEP}%aI{FIELD_SEP}%cI{FIELD_SEP}%s{FIELD_SEP}%b{ENTRY_SEP}"

DIFF_HEADER_PREFIXES = ("diff --git ", "diff --cc ", "diff --combined ")

DISPLAY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_references(raw_refs_str: str) -> tuple[str, ...]:
    """
    Parses the decoration string from git log %D.
    Example: "HEAD -> main, tag: v1.1, origin/main"
    Output: ('HEAD -> main', 'tag: v1.1', 'origin/main')
    """
    return tuple(ref.strip() for ref in raw_refs_str.split(",") if ref.strip())


def format_commit_date(raw_date: str) -> str:
    try:
        return datetime.fromisoformat(raw_date.strip()).strftime(DISPLAY_DATE_FORMAT)
    except ValueError:
        return raw_date.strip()


def parse_git_log_output(log_output: str) -> list[Commit]:
    """
    Parses output of `git log --pretty=format:GIT_LOG_FORMAT` into Commit objects,
    keeping the order git printed them in.
    """
    commits: list[Commit] = []
    if not log_output.strip():
        return commits

    for entry in log_output.split(ENTRY_SEP):
        # git separates entries with a newline as well
        entry = entry.strip("\n")
        if not entry.strip():
            continue

        parts = entry.split(FIELD_SEP)
        if len(parts) < FIELD_COUNT:
            continue

        sha, short_sha, parent_hashes_str, author, raw_date, raw_refs = (part.strip() for part in parts[:6])
        # The subject is last, so any stray separator ends up inside it
        subject = FIELD_SEP.join(parts[6:]).strip()

        commits.append(
            Commit(
                hash=sha,
                short_hash=short_sha,
                message=subject,
                author=author,
                date=format_commit_date(raw_date),
                parents=tuple(parent_hashes_str.split()),
                refs=parse_references(raw_refs),
            )
        )

    return commits


def _path_from_diff_header(line: str) -> str:
    if line.startswith("diff --git "):
        return line.rsplit(" b/", 1)[-1]
    return line.split(" ", 2)[-1]


def parse_patch(patch_text: str) -> tuple[FileDiff, ...]:
    """
    Splits unified diff output into one FileDiff per file. Only lines inside
    hunks count as added or removed, so the ---/+++ headers never do.
    """
    files: list[FileDiff] = []
    path: Optional[str] = None
    added = removed = 0
    lines: list[str] = []
    in_hunk = False

    def flush():
        if path is not None:
            files.append(FileDiff(path=path, added=added, removed=removed, lines=tuple(lines)))

    for line in patch_text.splitlines():
        if line.startswith(DIFF_HEADER_PREFIXES):
            flush()
            path = _path_from_diff_header(line)
            added = removed = 0
            lines = []
            in_hunk = False
            continue
        if path is None:
            continue

        if line.startswith("@@"):
            in_hunk = True
            lines.append(line)
            continue
        if not in_hunk:
            if line.startswith("+++ b/"):
                path = line[len("+++ b/"):]
            elif line.startswith("rename to "):
                path = line[len("rename to "):]
            continue

        lines.append(line)
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1

    flush()
    return tuple(files)


def parse_commit_details(show_output: str) -> Optional[CommitDetails]:
    """Parses `git show --format=COMMIT_DETAILS_FORMAT --patch` output."""
    header, sep, patch = show_output.partition(ENTRY_SEP)
    if not sep:
        return None

    parts = header.strip("\n").split(FIELD_SEP)
    if len(parts) < FIELD_COUNT:
        return None

    sha, author_name, author_email, author_date, commit_date, subject = (part.strip() for part in parts[:6])
    return CommitDetails(
        hash=sha,
        author_name=author_name,
        author_email=author_email,
        author_date=format_commit_date(author_date),
        commit_date=format_commit_date(commit_date),
        subject=subject,
        body=FIELD_SEP.join(parts[6:]).strip(),
        files=parse_patch(patch),
    )
