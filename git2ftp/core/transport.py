"""
Remote file transports (FTP, FTPS, SFTP and a no-op dry-run transport)

Every transport exposes the same four file operations plus close(), logs each
operation as it is issued and translates backend failures into the
TransportError family.
"""
import ftplib
import io
from typing import BinaryIO, Optional

import paramiko

from .. import config as _cfg
from ..config import SyncConfig, parse_ftp_url
from ..exceptions import DirectoryUnavailable, RemoteNotFound, TransportError
from ..utils.logging import log
from ..utils.retry import retried

# FTP reply codes that carry meaning for the sync protocol
FILE_UNAVAILABLE = 550
BAD_FILE_NAME = 553


def _reply_code(exc: BaseException) -> Optional[int]:
    """Extract the 3-digit reply code from an ftplib error, if any."""
    text = str(exc)[:3]
    return int(text) if text.isdigit() else None


class RemoteTransport:
    """Interface shared by all transports."""

    def store(self, path: str, fileobj: BinaryIO):
        raise NotImplementedError

    def retrieve(self, path: str) -> bytes:
        raise NotImplementedError

    def delete(self, path: str):
        raise NotImplementedError

    def make_dir(self, path: str):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


# ══════════════════════════════════════════════════════════════════════════════
#  FTP / FTPS
# ══════════════════════════════════════════════════════════════════════════════

class FTPTransport(RemoteTransport):
    """
    Wraps an ftplib.FTP (or FTP_TLS) session.

    Reply codes are mapped per command: 553 on STOR and 550 on MKD mean the
    parent directory is missing, 550 on RETR means the file does not exist.
    """

    def __init__(self, host: str, port: int = _cfg.FTP_PORT,
                 user: Optional[str] = None, password: Optional[str] = None,
                 tls: bool = False):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.tls = tls
        self._ftp: Optional[ftplib.FTP] = None

    # ── connection ─────────────────────────────────────────────────────────

    @retried
    def _dial(self) -> ftplib.FTP:
        ftp = ftplib.FTP_TLS() if self.tls else ftplib.FTP()
        ftp.connect(self.host, self.port, timeout=_cfg.DIAL_TIMEOUT)
        return ftp

    def connect(self):
        log(f"[FTP] connecting to {self.host}:{self.port} …")
        try:
            ftp = self._dial()
        except ftplib.all_errors as exc:
            raise TransportError(f"cannot dial to ftp: {exc}", _reply_code(exc)) from exc

        try:
            if self.user is not None:
                ftp.login(self.user, self.password)
            else:
                ftp.login()
            if self.tls:
                ftp.prot_p()
        except ftplib.all_errors as exc:
            ftp.close()
            raise TransportError(f"cannot login to ftp: {exc}", _reply_code(exc)) from exc

        self._ftp = ftp
        log("[FTP] connected ✓")

    def close(self):
        if self._ftp is None:
            return
        ftp, self._ftp = self._ftp, None
        try:
            ftp.quit()
        except ftplib.all_errors as exc:
            ftp.close()
            raise TransportError(f"cannot logout from ftp: {exc}", _reply_code(exc)) from exc
        log("[FTP] disconnected.")

    # ── file ops ───────────────────────────────────────────────────────────

    def _call(self, label: str, fn, *args, missing=None):
        """Run one FTP command, log its outcome and translate failures.

        *missing* is (reply code, exception class) for the one code that this
        command maps to a protocol-level signal.
        """
        if self._ftp is None:
            raise TransportError(f"{label}: not connected")
        log(label)
        try:
            result = fn(*args)
        except ftplib.all_errors as exc:
            code = _reply_code(exc)
            log(f"{label}: {code if code is not None else exc}")
            if missing is not None and code == missing[0]:
                raise missing[1](f"{label}: {exc}", code) from exc
            raise TransportError(f"{label}: {exc}", code) from exc
        log(f"{label}: 200")
        return result

    def store(self, path: str, fileobj: BinaryIO):
        self._call(f"STOR {path}", lambda: self._ftp.storbinary(f"STOR {path}", fileobj),
                   missing=(BAD_FILE_NAME, DirectoryUnavailable))

    def retrieve(self, path: str) -> bytes:
        buf = io.BytesIO()
        self._call(f"RETR {path}", lambda: self._ftp.retrbinary(f"RETR {path}", buf.write),
                   missing=(FILE_UNAVAILABLE, RemoteNotFound))
        return buf.getvalue()

    def delete(self, path: str):
        self._call(f"DELE {path}", lambda: self._ftp.delete(path))

    def make_dir(self, path: str):
        self._call(f"MKD {path}", lambda: self._ftp.mkd(path),
                   missing=(FILE_UNAVAILABLE, DirectoryUnavailable))


# ══════════════════════════════════════════════════════════════════════════════
#  SFTP
# ══════════════════════════════════════════════════════════════════════════════

class SFTPTransport(RemoteTransport):
    """
    Wraps paramiko SSHClient + SFTPClient.

    A missing parent directory surfaces from paramiko as FileNotFoundError, so
    it plays the role of the FTP "path unavailable" replies.
    """

    def __init__(self, host: str, port: int = _cfg.SFTP_PORT,
                 user: Optional[str] = None, password: Optional[str] = None):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    # ── connection ─────────────────────────────────────────────────────────

    @retried
    def _dial(self, client: paramiko.SSHClient, kw: dict):
        client.connect(**kw)

    def connect(self):
        who = f"{self.user}@" if self.user else ""
        log(f"[SFTP] connecting to {who}{self.host}:{self.port} …")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kw: dict = dict(hostname=self.host, port=self.port,
                        timeout=_cfg.DIAL_TIMEOUT, banner_timeout=30, auth_timeout=30)
        if self.user:
            kw["username"] = self.user
        if self.password:
            kw["password"] = self.password

        try:
            self._dial(client, kw)
            self._sftp = client.open_sftp()
        except (OSError, paramiko.SSHException) as exc:
            client.close()
            raise TransportError(f"cannot connect to sftp: {exc}") from exc

        self._ssh = client
        log("[SFTP] connected ✓")

    def close(self):
        if self._ssh is None:
            return
        ssh, sftp = self._ssh, self._sftp
        self._ssh = None
        self._sftp = None
        try:
            if sftp:
                sftp.close()
        except (OSError, paramiko.SSHException) as exc:
            raise TransportError(f"cannot logout from sftp: {exc}") from exc
        finally:
            ssh.close()
        log("[SFTP] disconnected.")

    # ── file ops ───────────────────────────────────────────────────────────

    def _call(self, label: str, fn, missing=None):
        if self._sftp is None:
            raise TransportError(f"{label}: not connected")
        log(label)
        try:
            result = fn()
        except FileNotFoundError as exc:
            log(f"{label}: {exc}")
            if missing is not None:
                raise missing(f"{label}: {exc}") from exc
            raise TransportError(f"{label}: {exc}") from exc
        except (OSError, paramiko.SSHException) as exc:
            log(f"{label}: {exc}")
            raise TransportError(f"{label}: {exc}") from exc
        log(f"{label}: 200")
        return result

    def store(self, path: str, fileobj: BinaryIO):
        self._call(f"STOR {path}", lambda: self._sftp.putfo(fileobj, path),
                   missing=DirectoryUnavailable)

    def retrieve(self, path: str) -> bytes:
        buf = io.BytesIO()
        self._call(f"RETR {path}", lambda: self._sftp.getfo(path, buf),
                   missing=RemoteNotFound)
        return buf.getvalue()

    def delete(self, path: str):
        self._call(f"DELE {path}", lambda: self._sftp.remove(path))

    def make_dir(self, path: str):
        self._call(f"MKD {path}", lambda: self._sftp.mkdir(path),
                   missing=DirectoryUnavailable)


# ══════════════════════════════════════════════════════════════════════════════
#  DRY RUN
# ══════════════════════════════════════════════════════════════════════════════

class NullTransport(RemoteTransport):
    """Logs every operation and changes nothing. There is no remote marker."""

    def store(self, path: str, fileobj: BinaryIO):
        log(f"[DRY] STOR {path}")

    def retrieve(self, path: str) -> bytes:
        log(f"[DRY] RETR {path}")
        raise RemoteNotFound(f"RETR {path}: dry-run has no remote files")

    def delete(self, path: str):
        log(f"[DRY] DELE {path}")

    def make_dir(self, path: str):
        log(f"[DRY] MKD {path}")

    def close(self):
        pass


def open_transport(cfg: SyncConfig) -> RemoteTransport:
    """Build and connect the transport selected by cfg.ftp_url."""
    if cfg.dry_run:
        log("[DRY] no connection, remote operations are only logged")
        return NullTransport()

    scheme, host, port = parse_ftp_url(cfg.ftp_url)
    if scheme == "sftp":
        transport: RemoteTransport = SFTPTransport(host, port, cfg.ftp_user, cfg.ftp_password)
    else:
        transport = FTPTransport(host, port, cfg.ftp_user, cfg.ftp_password,
                                 tls=scheme == "ftps")
    transport.connect()
    return transport
