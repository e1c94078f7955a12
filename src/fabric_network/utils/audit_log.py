"""Audit logging for controller-side changes.

Every mutation issued against the fabric controller (network create,
update and delete, attachment submits, deploy triggers) is recorded as a
single JSON line so that partial deployments can be traced afterwards.
"""
import json
import logging
import os
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

audit_logger = logging.getLogger("fabricnet.audit")


def setup_audit_logging(log_dir: Optional[str] = None) -> None:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.fabricnet/
    """
    if log_dir is None:
        log_dir = os.path.expanduser("~/.fabricnet")

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = os.path.join(log_dir, "audit.log")

    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    # Don't propagate to root logger
    audit_logger.propagate = False


@dataclass
class ChangeRecord:
    """Record of a controller change."""
    timestamp: str
    fabric: str
    network: str
    operation: str  # create_network, attach, deploy, detach, delete_network, ...
    success: bool
    parameters: dict
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=None, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        data = json.loads(json_str)
        return cls(**data)


class ChangeTracker:
    """Track and log changes made to one network on the controller."""

    def __init__(self, fabric: str, network: str):
        self.fabric = fabric
        self.network = network

    def log_change(
        self,
        operation: str,
        parameters: dict,
        success: bool,
        error: Optional[str] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> ChangeRecord:
        """Log a controller change.

        Args:
            operation: The operation performed (e.g., "attach")
            parameters: Payload or arguments sent to the controller
            success: Whether the controller accepted the change
            error: Error message if failed
            before_state: Declared state before the change
            after_state: Declared state after the change

        Returns:
            The ChangeRecord that was logged
        """
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            fabric=self.fabric,
            network=self.network,
            operation=operation,
            success=success,
            parameters=parameters,
            before_state=before_state,
            after_state=after_state,
            error=error,
        )
        audit_logger.info(record.to_json())
        return record


def get_recent_changes(
    log_file: Optional[str] = None,
    fabric: Optional[str] = None,
    network: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.fabricnet/audit.log
        fabric: Filter by fabric name
        network: Filter by network name
        operation: Filter by operation type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    if log_file is None:
        log_file = os.path.expanduser("~/.fabricnet/audit.log")

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if fabric and record.fabric != fabric:
                continue
            if network and record.network != network:
                continue
            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
