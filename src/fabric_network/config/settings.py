"""Connection settings for a fabric controller."""
import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ControllerConfig:
    """Configuration for a fabric controller endpoint."""
    name: str
    host: str
    scheme: str = "https"
    port: Optional[int] = None
    token: Optional[str] = None
    token_env: str = "FABRICNET_TOKEN"
    token_header: str = "Dcnm-Token"
    timeout: int = 30
    verify_ssl: bool = True
    # Deployment propagation polling
    poll_interval: float = 5
    poll_timeout: float = 120

    def get_token(self) -> str:
        """Get API token from config or environment variable."""
        if self.token:
            return self.token
        return os.environ.get(self.token_env, "")

    @property
    def base_url(self) -> str:
        if self.port:
            return f"{self.scheme}://{self.host}:{self.port}"
        return f"{self.scheme}://{self.host}"
