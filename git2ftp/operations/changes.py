"""
Change set resolution: `git diff --name-status` → filtered ChangeEntry list
"""
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..exceptions import DiffOracleError
from ..utils.logging import log, vlog

ADDED = "A"
MODIFIED = "M"
DELETED = "D"


@dataclass(frozen=True)
class ChangeEntry:
    """One changed file as reported by git. ``action`` is the raw status letter."""
    action: str
    path: str


class GitDiff:
    """Runs git in the repository root to list changed files between commits."""

    def __init__(self, repository_root: Path):
        self.repository_root = repository_root

    def name_status(self, from_sha: str, to_sha: str) -> list[str]:
        """Return the stdout lines of `git diff --name-status <from> <to>`."""
        cmd = ["git", "diff", "--name-status", from_sha, to_sha]
        log(f"Running git diff --name-status {from_sha} {to_sha}")
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repository_root,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise DiffOracleError(f"cannot start git diff command: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr.rstrip("\n")
            raise DiffOracleError(
                f"git diff exited {result.returncode}: {stderr}",
                stderr=result.stderr,
            )
        return result.stdout.splitlines()


def parse_name_status(line: str) -> Optional[ChangeEntry]:
    """
    Parse one `<letter><whitespace><path>` line. The action is the first
    character and the path is the trimmed remainder. Blank lines give None.
    """
    if not line.strip():
        return None
    return ChangeEntry(action=line[0], path=line[1:].strip())


class ChangeSetResolver:
    """
    Turns the diff oracle's output into the ordered list of entries below the
    sync directory. Filtering is a plain string prefix test.
    """

    def __init__(self, oracle: Callable[[str, str], Iterable[str]]):
        self.oracle = oracle

    def resolve(self, from_sha: str, to_sha: str, sync_directory: str) -> list[ChangeEntry]:
        entries: list[ChangeEntry] = []
        skipped = 0
        for line in self.oracle(from_sha, to_sha):
            entry = parse_name_status(line)
            if entry is None:
                continue
            if not entry.path.startswith(sync_directory):
                vlog(f"  [SKIP] {entry.action} {entry.path}")
                skipped += 1
                continue
            vlog(f"  [CHANGE] {entry.action} {entry.path}")
            entries.append(entry)
        log(f"[diff] {len(entries)} change(s) under '{sync_directory or '.'}'"
            f" ({skipped} outside)")
        return entries
