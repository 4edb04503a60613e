"""
Main sync engine - wires the resume point, the diff and the reconciliation
"""
from dataclasses import dataclass
from typing import Optional

from ..config import SyncConfig
from ..exceptions import TransportError
from ..operations.changes import ChangeSetResolver, GitDiff
from ..operations.reconcile import ReconciliationEngine
from ..state.resume import ResumePointStore
from ..utils.logging import log, set_verbose, warn
from .transport import RemoteTransport, open_transport


@dataclass
class SyncSummary:
    from_sha: str
    to_sha: str
    stored: int = 0
    deleted: int = 0


def run_sync(cfg: SyncConfig, transport: Optional[RemoteTransport] = None,
             resolver: Optional[ChangeSetResolver] = None) -> SyncSummary:
    """
    Run one incremental sync. The marker is only written after every change
    was applied; the transport is closed whatever happens.
    """
    set_verbose(cfg.verbose)

    print(f"\n{'=' * 64}")
    print(f"  Sync  {cfg.git_directory}/{cfg.sync_directory}")
    print(f"   →    {cfg.ftp_url}:{cfg.remote_directory or '.'}")
    print(f"{'=' * 64}")
    if cfg.dry_run:
        print("  *** DRY-RUN — no remote files will be changed ***")
    print()

    if transport is None:
        transport = open_transport(cfg)
    if resolver is None:
        resolver = ChangeSetResolver(GitDiff(cfg.git_directory).name_status)

    try:
        summary = _sync(cfg, transport, resolver)
    except BaseException:
        try:
            transport.close()
        except TransportError as exc:
            warn(f"{exc}")
        raise
    transport.close()

    print()
    print(f"{'─' * 64}")
    print(" SUMMARY")
    print(f"  Range   : {summary.from_sha}..{summary.to_sha}")
    print(f"  Stored  : {summary.stored}")
    print(f"  Deleted : {summary.deleted}")
    print(f"{'─' * 64}")
    return summary


def _sync(cfg: SyncConfig, transport: RemoteTransport,
          resolver: ChangeSetResolver) -> SyncSummary:
    store = ResumePointStore(transport)
    from_sha = cfg.from_sha or store.read(cfg.remote_directory)

    entries = resolver.resolve(from_sha, cfg.to_sha, cfg.sync_directory)

    engine = ReconciliationEngine(transport, cfg.git_directory,
                                  cfg.sync_directory, cfg.remote_directory)
    counts = engine.apply(entries)

    store.write(cfg.remote_directory, cfg.to_sha)
    summary = SyncSummary(from_sha=from_sha, to_sha=cfg.to_sha,
                          stored=counts["stored"], deleted=counts["deleted"])
    if not entries:
        log("[sync] Nothing to transfer — marker advanced ✓")
    return summary
