"""
Exception hierarchy for git2ftp
"""
from typing import Optional


class Git2FtpError(Exception):
    """Base class for every fatal git2ftp error."""


class ConfigError(Git2FtpError):
    """Invalid or conflicting configuration (CLI flags or config file)."""


class ResumeNotFound(Git2FtpError):
    """The remote .git2ftp marker is missing and no --from-sha was given."""


class DiffOracleError(Git2FtpError):
    """`git diff` could not be run or exited with an error."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class TransportError(Git2FtpError):
    """A remote operation failed.

    ``code`` holds the FTP reply code when the server sent one.
    """

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class DirectoryUnavailable(TransportError):
    """The server reported the target path as unavailable (parent missing)."""


class RemoteNotFound(TransportError):
    """The requested remote file does not exist."""


class LocalFileError(Git2FtpError):
    """A changed file could not be opened in the local repository."""


class UnknownAction(Git2FtpError):
    """git reported a change status other than Added, Modified or Deleted."""

    def __init__(self, action: str, path: str):
        super().__init__(f"unknown action: {action} ({path})")
        self.action = action
        self.path = path
