"""
Resume point: the last synchronized commit, kept in a marker file on the remote
"""
import io
import posixpath
from ..config import MARKER_FILE
from ..core.transport import RemoteTransport
from ..exceptions import RemoteNotFound, ResumeNotFound
from ..utils.logging import log


def marker_path(remote_root: str) -> str:
    """Return the marker file path inside *remote_root*."""
    return posixpath.join(remote_root, MARKER_FILE)


class ResumePointStore:
    """
    Reads and writes the remote marker file.

    The marker is read once at the start of a run and overwritten once at the
    end of a fully successful run; a failed run leaves it untouched.
    """

    def __init__(self, transport: RemoteTransport):
        self.transport = transport

    def read(self, remote_root: str) -> str:
        """
        Return the commit id stored in the marker, stripped of whitespace.
        Raises ResumeNotFound when the marker is absent or empty; any other
        transport failure propagates unchanged.
        """
        path = marker_path(remote_root)
        try:
            raw = self.transport.retrieve(path)
        except RemoteNotFound as exc:
            raise ResumeNotFound(
                f"file {MARKER_FILE} does not exist, you must specify --from-sha"
            ) from exc
        try:
            commit = raw.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise ResumeNotFound(
                f"file {MARKER_FILE} is not a valid commit id, you must specify --from-sha"
            ) from exc
        if not commit:
            raise ResumeNotFound(f"file {MARKER_FILE} is empty, you must specify --from-sha")
        log(f"[resume] last synchronized commit: {commit}")
        return commit

    def write(self, remote_root: str, commit: str):
        """Overwrite the marker with *commit*."""
        self.transport.store(marker_path(remote_root), io.BytesIO(commit.encode("utf-8")))
        log(f"[resume] marker set to {commit}")
