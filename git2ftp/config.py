"""
Configuration for git2ftp: defaults, YAML profiles and the immutable SyncConfig
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from .exceptions import ConfigError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS
# ══════════════════════════════════════════════════════════════════════════════

# Remote marker holding the last synchronized commit
MARKER_FILE = ".git2ftp"

# Project config file, searched upward from the working directory
PROJECT_CONFIG_FILE = ".git2ftp.yaml"

FTP_PORT = 21
SFTP_PORT = 22

# Seconds allowed for the initial TCP dial
DIAL_TIMEOUT = 5

# Retry settings (dial only)
RETRY_MAX = 3
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt

# Symbolic ref refused for --to-sha
HEAD_REF = "HEAD"

# Keys accepted in a profile; dashes are accepted too (to-sha == to_sha)
PROFILE_KEYS = (
    "git_directory", "remote_directory", "from_sha", "to_sha",
    "sync_directory", "ftp_url", "ftp_user", "ftp_password",
)


# ══════════════════════════════════════════════════════════════════════════════
#  SYNC CONFIG  ── built once, never mutated
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SyncConfig:
    git_directory: Path
    remote_directory: str
    to_sha: str
    ftp_url: str
    sync_directory: str = ""
    from_sha: Optional[str] = None
    ftp_user: Optional[str] = None
    ftp_password: Optional[str] = None
    dry_run: bool = False
    verbose: bool = False


def parse_ftp_url(url: str) -> tuple[str, str, int]:
    """
    Split an --ftp-url into (scheme, host, port).

    Accepts ``host``, ``host:port`` and ``scheme://host[:port]`` where scheme is
    ftp, ftps or sftp. The port defaults to 21 (22 for sftp).
    """
    parts = urlsplit(url if "://" in url else f"ftp://{url}")
    scheme = parts.scheme.lower()
    if scheme not in ("ftp", "ftps", "sftp"):
        raise ConfigError(f"unsupported scheme in --ftp-url: {parts.scheme}")
    if not parts.hostname:
        raise ConfigError(f"no host in --ftp-url: {url}")
    try:
        port = parts.port
    except ValueError as exc:
        raise ConfigError(f"invalid port in --ftp-url: {url}") from exc
    if port is None:
        port = SFTP_PORT if scheme == "sftp" else FTP_PORT
    return scheme, parts.hostname, port


def _with_trailing_slash(value: str) -> str:
    if value and not value.endswith("/"):
        return value + "/"
    return value


def build_config(options: dict) -> SyncConfig:
    """
    Validate and normalize a flat options dict into a SyncConfig.

    Raises ConfigError for missing required values, ``to_sha == HEAD`` and a
    user without password (or the reverse).
    """
    missing = [k for k in ("git_directory", "remote_directory", "to_sha", "ftp_url")
               if not options.get(k)]
    if missing:
        flags = ", ".join("--" + k.replace("_", "-") for k in missing)
        raise ConfigError(f"required option(s) not provided: {flags}")

    to_sha = str(options["to_sha"]).strip()
    if to_sha == HEAD_REF:
        raise ConfigError("cannot use HEAD as value for --to-sha")

    user = options.get("ftp_user")
    password = options.get("ftp_password")
    if (user is None) != (password is None):
        raise ConfigError("ftp-user must be specified with ftp-password")

    parse_ftp_url(str(options["ftp_url"]))

    from_sha = options.get("from_sha")
    return SyncConfig(
        git_directory=Path(str(options["git_directory"])).expanduser(),
        remote_directory=_with_trailing_slash(str(options["remote_directory"])),
        to_sha=to_sha,
        ftp_url=str(options["ftp_url"]),
        sync_directory=_with_trailing_slash(str(options.get("sync_directory") or "")),
        from_sha=str(from_sha).strip() if from_sha else None,
        ftp_user=None if user is None else str(user),
        ftp_password=None if password is None else str(password),
        dry_run=bool(options.get("dry_run", False)),
        verbose=bool(options.get("verbose", False)),
    )


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/git2ftp/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for git2ftp."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "git2ftp"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "git2ftp"
    return Path.home() / ".config" / "git2ftp"


def load_global_config() -> dict:
    """Load the global config, or an empty dict when there is none."""
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    return load_config_file(cfg_path)


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .git2ftp.yaml (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .git2ftp.yaml file.
    Returns the Path if found, or None if no parent holds one.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config_file(path: Path) -> dict:
    """Parse a YAML config file and return its contents as a dict."""
    import yaml

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a config data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults, with keys
    normalized to underscores.
    """
    defaults = data.get("defaults") or {}
    profiles = data.get("profiles") or []
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None and profiles:
        profile = profiles[0]
    merged = dict(defaults)
    merged.update(profile or {})
    return {k.replace("-", "_"): v for k, v in merged.items()
            if k.replace("-", "_") in PROFILE_KEYS}


def resolve_options(cli_options: dict, config_path: Optional[Path] = None,
                    profile_name: str = "default") -> dict:
    """
    Merge option sources, lowest precedence first: global config, project
    config (explicit *config_path* or the nearest .git2ftp.yaml), CLI flags.
    CLI values of None mean "not given".
    """
    merged = get_profile(load_global_config(), profile_name)
    path = config_path or find_config_file()
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        merged.update(get_profile(load_config_file(path), profile_name))
    merged.update({k: v for k, v in cli_options.items() if v is not None})
    return merged
