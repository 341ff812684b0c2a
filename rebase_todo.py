"""
Non-interactive editor used while running `git rebase -i`.

Git calls GIT_SEQUENCE_EDITOR with the todo file and GIT_EDITOR with the commit
message file; both point at this script, so a scripted rebase never waits for a
human.

    rebase_todo.py reword <hash> <todo-file>
    rebase_todo.py squash <hash> [<hash> ...] <todo-file>
    rebase_todo.py message <source-file> <message-file>
"""

import sys
from typing import Iterable

PICK_COMMANDS = ("pick", "p")


def mark_commits(lines: list[str], hashes: Iterable[str], action: str) -> list[str]:
    """Replaces `pick` with `action` on todo lines whose abbreviated hash matches one of `hashes`."""
    hashes = list(hashes)
    result = []
    for line in lines:
        parts = line.strip().split()
        if len(parts) >= 2 and parts[0] in PICK_COMMANDS:
            short_hash = parts[1]
            if any(full_hash.startswith(short_hash) for full_hash in hashes):
                result.append(" ".join([action, *parts[1:]]))
                continue
        result.append(line)
    return result


def rewrite_todo_file(todo_path: str, hashes: Iterable[str], action: str):
    with open(todo_path, "r", encoding="utf-8") as f:
        lines = f.read().split("\n")
    with open(todo_path, "w", encoding="utf-8") as f:
        f.write("\n".join(mark_commits(lines, hashes, action)))


def copy_message(source_path: str, message_path: str):
    with open(source_path, "r", encoding="utf-8") as f:
        message = f.read()
    with open(message_path, "w", encoding="utf-8") as f:
        f.write(message)


def main(argv: list[str]) -> int:
    if len(argv) < 3:
        print(__doc__, file=sys.stderr)
        return 2

    command, args = argv[0], argv[1:]
    if command in ("reword", "squash"):
        rewrite_todo_file(args[-1], args[:-1], command)
    elif command == "message":
        copy_message(args[0], args[1])
    else:
        print(f"unknown command: {command}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
