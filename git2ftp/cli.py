#!/usr/bin/env python3
"""
git2ftp  —  Transfer your git commits to a distant FTP server
=============================================================

Uploads the files changed between two commits (restricted to a sync
directory) and deletes the removed ones. The last synchronized commit is kept
in a `.git2ftp` file inside the remote directory, so the next run only needs
--to-sha.

Every option may also come from a `.git2ftp.yaml` profile (searched upward
from the current directory) or from the global config; flags win.

Run 'git2ftp --help' for details.
"""
import argparse
import sys
from pathlib import Path

from . import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git2ftp",
        description="Transfer your git commits to a distant FTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--git-directory", metavar="PATH",
                        help="Root directory of the git repository on your local machine")
    parser.add_argument("--remote-directory", metavar="PATH",
                        help="Remote directory where you want to upload your files")
    parser.add_argument("--from-sha", metavar="SHA",
                        help="Git commit to synchronize from (default: read from the remote .git2ftp file)")
    parser.add_argument("--to-sha", metavar="SHA",
                        help="Git commit to synchronize to. Don't use HEAD")
    parser.add_argument("--sync-directory", metavar="PATH",
                        help="Directory to synchronize, relative to --git-directory (default: whole repository)")
    parser.add_argument("--ftp-url", metavar="URL",
                        help="FTP server, of the form ftp.example.org:21 (ftps:// and sftp:// also accepted)")
    parser.add_argument("--ftp-user", metavar="NAME",
                        help="User to log on the FTP")
    parser.add_argument("--ftp-password", metavar="PASSWORD",
                        help="Password for the user to log on the FTP")
    parser.add_argument("--config", metavar="PATH", type=Path,
                        help="YAML config file (default: nearest .git2ftp.yaml)")
    parser.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile to use from the config file (default: default)")
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Log remote operations without connecting (requires --from-sha)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show every file considered, not just actions")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    """CLI entry point for git2ftp"""
    from .config import resolve_options, build_config
    from .core.sync_engine import run_sync
    from .exceptions import Git2FtpError
    from .utils.logging import error

    args = build_parser().parse_args(argv)

    cli_options = {
        "git_directory": args.git_directory,
        "remote_directory": args.remote_directory,
        "from_sha": args.from_sha,
        "to_sha": args.to_sha,
        "sync_directory": args.sync_directory,
        "ftp_url": args.ftp_url,
        "ftp_user": args.ftp_user,
        "ftp_password": args.ftp_password,
    }

    try:
        options = resolve_options(cli_options, args.config, args.profile)
        options["dry_run"] = args.dry_run
        options["verbose"] = args.verbose
        cfg = build_config(options)
        run_sync(cfg)
    except Git2FtpError as exc:
        error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        error("interrupted; the remote marker was not updated")
        sys.exit(1)


if __name__ == "__main__":
    main()
