"""Controller inventory management from YAML configuration."""
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from .settings import ControllerConfig

logger = logging.getLogger(__name__)


class ControllerInventory:
    """Manages the controller inventory loaded from YAML config.

    ```yaml
    defaults:
      token_env: DCNM_TOKEN
      verify_ssl: false
      poll_interval: 5
      poll_timeout: 180

    controllers:
      dc1:
        host: dcnm.dc1.example.net
      lab:
        host: 10.0.0.5
        port: 8443
        poll_timeout: 30
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the controllers.yaml config file."""
        env_path = os.environ.get("FABRICNET_CONFIG")
        if env_path:
            return env_path

        search_paths = [
            Path.cwd() / "configs" / "controllers.yaml",
            Path.cwd() / "controllers.yaml",
            Path.home() / ".config" / "fabricnet" / "controllers.yaml",
            Path("/etc/fabricnet/controllers.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise FileNotFoundError(
            "Could not find controllers.yaml. Create one in ./configs/controllers.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        with open(self.config_path) as f:
            self._config = yaml.safe_load(f) or {}

        # Apply defaults
        defaults = self._config.get("defaults", {})
        for controller_id, controller_config in self._config.get("controllers", {}).items():
            if controller_config is None:
                raise ValueError(f"Controller '{controller_id}' has no settings")
            for key, value in defaults.items():
                if key not in controller_config:
                    controller_config[key] = value

    def get_controller_ids(self) -> list[str]:
        """Get all controller IDs."""
        return list(self._config.get("controllers", {}).keys())

    def get_controller_config(self, controller_id: str) -> ControllerConfig:
        """Get typed settings for a controller."""
        controllers = self._config.get("controllers", {})
        if controller_id not in controllers:
            raise KeyError(f"Unknown controller: {controller_id}")
        settings = dict(controllers[controller_id])
        settings.setdefault("name", controller_id)
        return ControllerConfig(**settings)

    def get_client(self, controller_id: str):
        """Create a REST client for a controller.

        The caller owns the client and must close it (or use it as an
        async context manager).
        """
        from ..client import ControllerClient

        return ControllerClient(self.get_controller_config(controller_id))

    def get_reconciler(self, controller_id: str):
        """Create a reconciler bound to a fresh client for a controller.

        The reconciler owns the client; use it as an async context manager
        so the client is closed.
        """
        from ..client import ControllerClient
        from ..reconcile import NetworkReconciler

        config = self.get_controller_config(controller_id)
        return NetworkReconciler(
            ControllerClient(config),
            poll_interval=config.poll_interval,
            poll_timeout=config.poll_timeout,
        )
