"""Utility modules for logging, auditing and polling."""
from .audit_log import ChangeTracker, setup_audit_logging, get_recent_changes
from .logging_config import setup_logging, timed, perf_logger
from .polling import poll_until

__all__ = [
    "ChangeTracker",
    "setup_audit_logging",
    "get_recent_changes",
    "setup_logging",
    "timed",
    "perf_logger",
    "poll_until",
]
