"""Controller configuration loading."""
from .settings import ControllerConfig
from .inventory import ControllerInventory

__all__ = ["ControllerConfig", "ControllerInventory"]
