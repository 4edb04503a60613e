"""
Reconciliation: replay change entries onto the remote transport
"""
from pathlib import Path
from typing import Iterable

from ..core.transport import RemoteTransport
from ..exceptions import DirectoryUnavailable, LocalFileError, TransportError, UnknownAction
from ..utils.logging import log, vlog, warn
from .changes import ADDED, DELETED, MODIFIED, ChangeEntry


class ReconciliationEngine:
    """
    Applies entries one at a time, in order. The first failure aborts the
    run; entries already applied are not rolled back.

    Uploads whose parent directory is missing get one directory-creation pass
    followed by exactly one retried upload.
    """

    def __init__(self, transport: RemoteTransport, git_directory: Path,
                 sync_directory: str, remote_directory: str):
        self.transport = transport
        self.git_directory = Path(git_directory)
        self.sync_directory = sync_directory
        self.remote_directory = remote_directory

    def remote_path_for(self, path: str) -> str:
        """Swap the first occurrence of the sync directory for the remote root."""
        return path.replace(self.sync_directory, self.remote_directory, 1)

    def apply(self, entries: Iterable[ChangeEntry]) -> dict[str, int]:
        """Apply every entry; returns counts keyed by "stored" and "deleted"."""
        counts = {"stored": 0, "deleted": 0}
        for entry in entries:
            try:
                action = self.apply_entry(entry)
            except Exception:
                warn(f"cannot upload file {entry.path} to ftp")
                raise
            if action == DELETED:
                counts["deleted"] += 1
            else:
                counts["stored"] += 1
        return counts

    def apply_entry(self, entry: ChangeEntry) -> str:
        remote = self.remote_path_for(entry.path)
        vlog(f"file {entry.path} remote equivalent is {remote}")
        if entry.action == DELETED:
            self.transport.delete(remote)
            log(f"  [DEL ✓] {remote}")
        elif entry.action in (ADDED, MODIFIED):
            self._upload(self.git_directory / entry.path, remote)
            log(f"  [PUT ✓] {remote}")
        else:
            raise UnknownAction(entry.action, entry.path)
        return entry.action

    # ── upload with directory-creation retry ──────────────────────────────────

    def _upload(self, local: Path, remote: str):
        try:
            f = local.open("rb")
        except OSError as exc:
            raise LocalFileError(f"cannot open {local}: {exc}") from exc
        with f:
            try:
                self.transport.store(remote, f)
                return
            except DirectoryUnavailable:
                directory = remote.rpartition("/")[0]
                log(f"  [MKDIR] parent of {remote} is missing, creating {directory}")
                self._make_dirs(directory)
            f.seek(0)
            # Second and last attempt
            self.transport.store(remote, f)

    def _make_dirs(self, directory: str):
        """
        Create *directory*; if its parent is missing too, create the parent
        chain first and then try *directory* once more without falling back.
        """
        directory = directory.rstrip("/")
        try:
            self.transport.make_dir(directory)
            return
        except DirectoryUnavailable:
            parent = directory.rpartition("/")[0]
            if not parent:
                raise TransportError(f"cannot create dir {directory}") from None
        self._make_dirs(parent)
        self.transport.make_dir(directory)
