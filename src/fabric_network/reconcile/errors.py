"""Reconciliation errors."""


class ReconcileError(Exception):
    """Base class for reconciliation failures."""


class ValidationError(ReconcileError):
    """Declared state rejected before any controller call was made."""


class PartialDeploymentError(ReconcileError):
    """The network exists on the controller but is not deployed."""

    def __init__(self, network: str, verb: str, reason: str):
        super().__init__(
            f"Network record {network} is {verb} but not deployed yet. "
            f"Error while attachment: {reason}"
        )
        self.network = network
        self.reason = reason


class AttachmentError(ReconcileError):
    """The controller rejected an attachment or detachment batch."""


class NetworkNotFoundError(ReconcileError):
    """The managed network no longer exists on the controller."""
