"""Network reconciliation - declarative management of fabric networks.

The reconciler takes a declared network and drives the controller to it:
- Create/update the network object and its profile
- Attach switches, sending only port deltas on update
- Trigger deployment and poll until it propagates
- Map controller state back into the typed model

Usage:
    from fabric_network.client import ControllerClient
    from fabric_network.reconcile import NetworkReconciler, parse_network

    async with ControllerClient(config) as client:
        reconciler = NetworkReconciler(client)
        network = await reconciler.create(parse_network({
            "fabric_name": "fabric1",
            "name": "web",
            "vrf_name": "tenant-a",
            "attachments": [
                {"serial_number": "FDO1234", "switch_ports": ["Ethernet1/1"]},
            ],
        }))
"""

from .orchestrator import NetworkReconciler, parse_import_key
from .schema import (
    Network,
    NetworkProfile,
    Attachment,
    AttachmentRecord,
    SwitchAttachStatus,
    PortDiff,
    NetworkState,
)
from .errors import (
    ReconcileError,
    ValidationError,
    PartialDeploymentError,
    AttachmentError,
    NetworkNotFoundError,
)
from .parser import NetworkParser, ParseError, parse_network, network_to_dict
from .diff import diff_ports, diff_attachment_ports
from .poller import is_deployed, switch_attach_status, wait_for_deployment

__all__ = [
    # Main entry point
    "NetworkReconciler",
    "parse_import_key",
    # Schema classes
    "Network",
    "NetworkProfile",
    "Attachment",
    "AttachmentRecord",
    "SwitchAttachStatus",
    "PortDiff",
    "NetworkState",
    # Errors
    "ReconcileError",
    "ValidationError",
    "PartialDeploymentError",
    "AttachmentError",
    "NetworkNotFoundError",
    # Parser
    "NetworkParser",
    "ParseError",
    "parse_network",
    "network_to_dict",
    # Components (for advanced use)
    "diff_ports",
    "diff_attachment_ports",
    "is_deployed",
    "switch_attach_status",
    "wait_for_deployment",
]
