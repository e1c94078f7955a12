"""Fabric controller REST client."""
from .rest import ControllerClient, ControllerError, ControllerNotFoundError

__all__ = ["ControllerClient", "ControllerError", "ControllerNotFoundError"]
