"""Operations (change set resolution, reconciliation)"""
from .changes import ChangeEntry, ChangeSetResolver, GitDiff, parse_name_status
from .reconcile import ReconciliationEngine

__all__ = [
    "ChangeEntry", "ChangeSetResolver", "GitDiff", "parse_name_status",
    "ReconciliationEngine",
]
