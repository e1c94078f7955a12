"""Shared fixtures: an in-memory fabric controller."""
import copy

import pytest

from fabric_network.client.rest import ControllerError, ControllerNotFoundError


class FakeController:
    """In-memory stand-in for ControllerClient.

    Keeps network documents and per-switch attachment records, and records
    every call so tests can assert on ordering and payloads.
    """

    def __init__(self):
        self.networks: dict[tuple[str, str], dict] = {}
        self.records: dict[tuple[str, str], dict[str, dict]] = {}
        self.calls: list[tuple] = []
        self.batches: list[list] = []
        self.failures: dict[str, Exception] = {}
        self.attach_results: dict[str, str] | None = None
        self.deploy_propagates = True
        self.next_vlan = 2300
        self.next_segment = 30000

    def _call(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.failures:
            raise self.failures[method]

    def called(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    def fail(self, method: str, error: Exception | None = None) -> None:
        self.failures[method] = error or ControllerError(f"{method} failed", 500)

    # === Seeding helpers ===

    def add_network(self, fabric: str, name: str, doc: dict) -> None:
        self.networks[(fabric, name)] = doc

    def add_record(self, fabric: str, name: str, serial: str, **fields) -> None:
        record = {
            "switchSerialNo": serial,
            "isLanAttached": False,
            "lanAttachState": "NA",
            "vlanId": "null",
            "portNames": "null",
        }
        record.update(fields)
        self.records.setdefault((fabric, name), {})[serial] = record

    # === ControllerClient surface ===

    async def get_network(self, fabric, name):
        self._call("get_network", fabric, name)
        if (fabric, name) not in self.networks:
            raise ControllerNotFoundError(f"{fabric}/{name}", 404)
        return copy.deepcopy(self.networks[(fabric, name)])

    async def get_attachments(self, fabric, name):
        self._call("get_attachments", fabric, name)
        return copy.deepcopy(list(self.records.get((fabric, name), {}).values()))

    async def allocate_vlan(self, fabric):
        self._call("allocate_vlan", fabric)
        self.next_vlan += 1
        return self.next_vlan

    async def allocate_segment_id(self, fabric):
        self._call("allocate_segment_id", fabric)
        self.next_segment += 1
        return str(self.next_segment)

    async def create_network(self, fabric, payload):
        self._call("create_network", fabric, payload)
        self.networks[(fabric, payload["networkName"])] = copy.deepcopy(payload)

    async def update_network(self, fabric, name, payload):
        self._call("update_network", fabric, name, payload)
        if (fabric, name) not in self.networks:
            raise ControllerNotFoundError(f"{fabric}/{name}", 404)
        self.networks[(fabric, name)] = copy.deepcopy(payload)

    async def delete_network(self, fabric, name):
        self._call("delete_network", fabric, name)
        if self.networks.pop((fabric, name), None) is None:
            raise ControllerNotFoundError(f"{fabric}/{name}", 404)
        self.records.pop((fabric, name), None)

    async def submit_attachments(self, fabric, batch):
        self._call("submit_attachments", fabric, batch)
        self.batches.append(copy.deepcopy(batch))
        results = {}
        for group in batch:
            for entry in group["lanAttachList"]:
                serial = entry["serialNumber"]
                results[serial] = "SUCCESS"
                self._apply_entry(fabric, group["networkName"], entry)
        if self.attach_results is not None:
            return dict(self.attach_results)
        return results

    def _apply_entry(self, fabric, name, entry):
        records = self.records.setdefault((fabric, name), {})
        record = records.get(entry["serialNumber"])
        if record is None:
            self.add_record(fabric, name, entry["serialNumber"])
            record = records[entry["serialNumber"]]
        if not entry["deployment"]:
            record.update(isLanAttached=False, lanAttachState="NA", portNames="null")
            return
        ports = [] if record["portNames"] == "null" else record["portNames"].split(",")
        added = [p for p in entry.get("switchPorts", "").split(",") if p]
        removed = [p for p in entry.get("detachSwitchPorts", "").split(",") if p]
        ports = [p for p in ports if p not in removed] + [p for p in added if p not in ports]
        record.update(
            isLanAttached=True,
            lanAttachState="PENDING",
            vlanId=entry["vlan"],
            portNames=",".join(ports),
        )

    async def deploy(self, fabric, name):
        self._call("deploy", fabric, name)
        if not self.deploy_propagates:
            return
        for record in self.records.get((fabric, name), {}).values():
            record["lanAttachState"] = "DEPLOYED" if record["isLanAttached"] else "NA"


@pytest.fixture
def controller():
    return FakeController()
