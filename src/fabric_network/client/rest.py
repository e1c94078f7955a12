"""REST client for the fabric controller top-down network API.

Wraps a single ``httpx.AsyncClient``. Every method maps to one controller
call; nothing here retries, interprets attachment results or waits for
deployment. Those decisions belong to the reconciler.
"""
import json
import logging
from typing import Any, Optional

import httpx

from ..config.settings import ControllerConfig
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)


class ControllerError(Exception):
    """A controller call failed (transport error, HTTP error, bad body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ControllerNotFoundError(ControllerError):
    """The requested controller object does not exist."""


class ControllerClient:
    """Async client for network, attachment and pool endpoints."""

    TOP_DOWN = "/rest/top-down/fabrics"

    def __init__(
        self,
        config: ControllerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        headers = {"Content-Type": "application/json"}
        token = config.get_token()
        if token:
            headers[config.token_header] = token
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=httpx.Timeout(config.timeout),
            verify=config.verify_ssl,
            transport=transport,
        )

    @property
    def target_id(self) -> str:
        return self.config.name

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # === Transport ===

    async def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        params: Optional[dict] = None,
    ) -> httpx.Response:
        logger.debug(f"{method} {path}")
        try:
            resp = await self._http.request(method, path, json=payload, params=params)
        except httpx.HTTPError as e:
            raise ControllerError(f"{method} {path} failed: {e}") from e

        if resp.status_code == 404:
            raise ControllerNotFoundError(
                f"{method} {path}: not found", status_code=resp.status_code
            )
        if resp.is_error:
            raise ControllerError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise ControllerError(
                f"Invalid JSON from {resp.request.url}: {e}",
                status_code=resp.status_code,
            ) from e

    def _network_path(self, fabric: str, name: str) -> str:
        return f"{self.TOP_DOWN}/{fabric}/networks/{name}"

    # === Reads ===

    @timed("get_network")
    async def get_network(self, fabric: str, name: str) -> dict:
        """Fetch the network document (profile embedded as a JSON string)."""
        resp = await self._request("GET", self._network_path(fabric, name))
        data = self._json(resp)
        if not isinstance(data, dict):
            raise ControllerError(f"Unexpected network document for {fabric}/{name}")
        return data

    @timed("get_attachments")
    async def get_attachments(self, fabric: str, name: str) -> list:
        """Fetch the attachment status documents of a network."""
        resp = await self._request(
            "GET", f"{self._network_path(fabric, name)}/attachments"
        )
        data = self._json(resp)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ControllerError(f"Unexpected attachment document for {fabric}/{name}")
        return data

    # === Pools ===

    @timed("allocate_vlan")
    async def allocate_vlan(self, fabric: str) -> int:
        """Request the next top-down network VLAN from the fabric pool."""
        resp = await self._request(
            "GET",
            f"/rest/resource-manager/vlan/{fabric}",
            params={"vlanUsageType": "TOP_DOWN_NETWORK_VLAN"},
        )
        try:
            return int(resp.text.strip().strip('"'))
        except ValueError as e:
            raise ControllerError(f"VLAN pool returned {resp.text!r}") from e

    @timed("allocate_segment")
    async def allocate_segment_id(self, fabric: str) -> str:
        """Request a new network segment identifier for the fabric."""
        resp = await self._request(
            "POST", f"/rest/managed-pool/fabrics/{fabric}/segments/ids"
        )
        data = self._json(resp)
        if not isinstance(data, dict) or data.get("segmentId") is None:
            raise ControllerError(f"Segment pool returned {data!r}")
        return str(data["segmentId"])

    # === Network lifecycle ===

    @timed("create_network")
    async def create_network(self, fabric: str, payload: dict) -> None:
        await self._request("POST", f"{self.TOP_DOWN}/{fabric}/networks", payload)

    @timed("update_network")
    async def update_network(self, fabric: str, name: str, payload: dict) -> None:
        await self._request("PUT", self._network_path(fabric, name), payload)

    @timed("delete_network")
    async def delete_network(self, fabric: str, name: str) -> None:
        await self._request("DELETE", self._network_path(fabric, name))

    # === Attachments and deployment ===

    @timed("submit_attachments")
    async def submit_attachments(self, fabric: str, batch: list) -> dict[str, str]:
        """Submit an attachment batch.

        Returns:
            Mapping of switch key to the controller's literal status string
        """
        resp = await self._request(
            "POST", f"{self.TOP_DOWN}/{fabric}/networks/attachments", batch
        )
        data = self._json(resp)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ControllerError(f"Unexpected attachment response: {data!r}")
        return {str(k): str(v) for k, v in data.items()}

    @timed("deploy")
    async def deploy(self, fabric: str, name: str) -> None:
        """Kick off deployment; completion is only observable by polling."""
        await self._request("POST", f"{self._network_path(fabric, name)}/deploy")
