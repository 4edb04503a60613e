"""Utilities (logging, retry)"""
from .logging import log, vlog, warn, error, set_verbose
from .retry import retried

__all__ = [
    "log", "vlog", "warn", "error", "set_verbose",
    "retried",
]
