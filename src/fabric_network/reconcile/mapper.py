"""Remote state mapper.

Translates controller documents into the typed local model and builds the
outbound network, profile and attachment payloads. The controller's wire
quirks (the literal ``"null"`` string, numbers and booleans sent as
strings, the profile embedded as a JSON string) are resolved here so the
rest of the package only sees typed values.
"""
import json
import logging
from typing import Any, Iterable, Optional

from .schema import (
    Attachment,
    AttachmentRecord,
    Network,
    NetworkProfile,
    PortDiff,
)

logger = logging.getLogger(__name__)

NULL_SENTINEL = "null"

_TRUE_STRINGS = {"1", "t", "true"}
_FALSE_STRINGS = {"0", "f", "false"}

# Wire key -> NetworkProfile attribute
_PROFILE_STRINGS = {
    "vlanName": "vlan_name",
    "gatewayIpAddress": "ipv4_gateway",
    "gatewayIpV6Address": "ipv6_gateway",
    "intfDescription": "description",
    "secondaryGW1": "secondary_gw_1",
    "secondaryGW2": "secondary_gw_2",
    "mcastGroup": "mcast_group",
    "dhcpServerAddr1": "dhcp_1",
    "dhcpServerAddr2": "dhcp_2",
    "vrfDhcp": "dhcp_vrf",
    "tag": "tag",
}
_PROFILE_INTS = {
    "vlanId": "vlan_id",
    "mtu": "mtu",
    "loopbackId": "loopback_id",
}
_PROFILE_FLAGS = {
    "isLayer2Only": "l2_only",
    "suppressArp": "arp_suppression",
    "enableIR": "ir_enabled",
    "trmEnabled": "trm_enabled",
    "rtBothAuto": "rt_both_auto",
    "enableL3OnBorder": "l3_gateway_on_border",
}


# === Wire value parsing ===

def wire_value(doc: dict, key: str) -> Any:
    """Value of ``key``, or None when absent, JSON null or the "null" string."""
    value = doc.get(key)
    if value is None or value == NULL_SENTINEL:
        return None
    return value


def parse_int(value: Any) -> Optional[int]:
    """Parse a wire number; None when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a wire boolean; None when absent or unparseable."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return None


def split_ports(value: Any) -> Optional[list[str]]:
    """Split a comma separated port string; None when absent."""
    if value is None:
        return None
    if isinstance(value, list):
        return [str(p).strip() for p in value if str(p).strip()]
    return [p.strip() for p in str(value).split(",") if p.strip()]


def join_ports(ports: Iterable[str]) -> str:
    return ",".join(ports)


# === Inbound ===

def _load_profile_document(raw: Any) -> Optional[dict]:
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str) or not raw:
        return None
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return doc if isinstance(doc, dict) else None


def apply_remote_profile(profile: NetworkProfile, doc: dict) -> NetworkProfile:
    """Overwrite ``profile`` from a controller profile document."""
    for key, attr in _PROFILE_STRINGS.items():
        value = wire_value(doc, key)
        if value is not None:
            setattr(profile, attr, str(value))

    for key, attr in _PROFILE_INTS.items():
        number = parse_int(wire_value(doc, key))
        if number is not None:
            setattr(profile, attr, number)

    for key, attr in _PROFILE_FLAGS.items():
        value = wire_value(doc, key)
        if value is None or value == "":
            setattr(profile, attr, False)
            continue
        flag = parse_bool(value)
        if flag is not None:
            setattr(profile, attr, flag)

    return profile


def apply_remote_network(network: Network, doc: dict) -> Network:
    """Refresh every computed attribute of ``network`` from ``doc``.

    Fields absent from the document, or present but unparseable, keep
    their local value.
    """
    string_fields = {
        "fabric": "fabric_name",
        "networkName": "name",
        "displayName": "display_name",
        "networkId": "network_id",
        "networkTemplate": "template",
        "networkExtensionTemplate": "extension_template",
        "vrf": "vrf_name",
        "serviceNetworkTemplate": "service_template",
        "source": "source",
    }
    for key, attr in string_fields.items():
        value = wire_value(doc, key)
        if value is not None:
            setattr(network, attr, str(value))

    profile_doc = _load_profile_document(doc.get("networkTemplateConfig"))
    if profile_doc is None:
        logger.warning(
            f"Network {network.fabric_name}/{network.name}: "
            f"unreadable networkTemplateConfig, profile left unchanged"
        )
    else:
        apply_remote_profile(network.profile, profile_doc)

    network.id = network.name
    return network


def _record_from_doc(doc: dict) -> Optional[AttachmentRecord]:
    serial = wire_value(doc, "switchSerialNo")
    if serial is None:
        return None
    state = wire_value(doc, "lanAttachState")
    name = wire_value(doc, "switchName")
    return AttachmentRecord(
        serial_number=str(serial),
        lan_attach_state=str(state) if state is not None else None,
        attached=parse_bool(wire_value(doc, "isLanAttached")) is True,
        vlan_id=parse_int(wire_value(doc, "vlanId")),
        ports=split_ports(wire_value(doc, "portNames")),
        switch_name=str(name) if name is not None else None,
    )


def parse_attachment_records(document: Any) -> list[AttachmentRecord]:
    """Build typed records from an attachment status document.

    Accepts both a flat list of per-switch documents and the grouped form
    where each entry carries a ``lanAttachList``.
    """
    records = []
    for item in document or []:
        if not isinstance(item, dict):
            continue
        nested = item.get("lanAttachList")
        docs = nested if isinstance(nested, list) else [item]
        for doc in docs:
            if not isinstance(doc, dict):
                continue
            record = _record_from_doc(doc)
            if record is not None:
                records.append(record)
    return records


def records_to_attachments(records: Iterable[AttachmentRecord]) -> list[Attachment]:
    """Seed a declared attachment list from the switches currently attached."""
    attachments = []
    for record in records:
        if not record.attached:
            continue
        attachments.append(Attachment(
            serial_number=record.serial_number,
            vlan_id=record.vlan_id or 0,
            attach=True,
            switch_ports=list(record.ports or []),
        ))
    return attachments


# === Outbound ===

def build_profile_payload(network: Network, vlan_id: Optional[int]) -> dict:
    """Profile document for ``networkTemplateConfig``.

    The layer-2-only flag is always derived from the routing domain.
    """
    profile = network.profile
    payload: dict[str, Any] = {
        "isLayer2Only": network.is_layer2_only,
        "suppressArp": profile.arp_suppression,
        "enableIR": profile.ir_enabled,
        "trmEnabled": profile.trm_enabled,
        "rtBothAuto": profile.rt_both_auto,
        "enableL3OnBorder": profile.l3_gateway_on_border,
        "networkName": network.name,
        "segmentId": network.network_id,
    }
    if vlan_id is not None:
        payload["vlanId"] = vlan_id
    for key, attr in _PROFILE_STRINGS.items():
        value = getattr(profile, attr)
        if value is not None:
            payload[key] = value
    for key, attr in _PROFILE_INTS.items():
        if key == "vlanId":
            continue
        value = getattr(profile, attr)
        if value is not None:
            payload[key] = value
    return payload


def build_network_payload(network: Network, vlan_id: Optional[int]) -> dict:
    """Network document for create/update calls."""
    payload = {
        "fabric": network.fabric_name,
        "networkName": network.name,
        "displayName": network.display_name or network.name,
        "networkId": network.network_id,
        "networkTemplate": network.template,
        "networkExtensionTemplate": network.extension_template,
        "vrf": network.vrf_name,
        "networkTemplateConfig": json.dumps(build_profile_payload(network, vlan_id)),
    }
    if network.service_template:
        payload["serviceNetworkTemplate"] = network.service_template
    if network.source:
        payload["source"] = network.source
    return payload


def build_attach_entry(
    network: Network,
    attachment: Attachment,
    network_vlan: Optional[int],
    ports: Optional[PortDiff] = None,
) -> dict:
    """One ``lanAttachList`` entry attaching ``attachment``.

    Without ``ports`` the full declared port list is sent (create); with a
    PortDiff only the delta is sent (update).
    """
    entry: dict[str, Any] = {
        "fabric": network.fabric_name,
        "networkName": network.name,
        "deployment": attachment.attach,
        "serialNumber": attachment.serial_number,
        "vlan": attachment.vlan_id or network_vlan,
        "dot1QVlan": attachment.dot1q_vlan,
        "untagged": attachment.untagged,
    }
    if ports is None:
        entry["switchPorts"] = join_ports(attachment.switch_ports)
    else:
        entry.update(ports.as_wire())
    if attachment.free_form_config is not None:
        entry["freeformConfig"] = attachment.free_form_config
    if attachment.extension_values is not None:
        entry["extensionValues"] = attachment.extension_values
    if attachment.instance_values is not None:
        entry["instanceValues"] = attachment.instance_values
    return entry


def build_detach_entry(
    network: Network,
    attachment: Attachment,
    network_vlan: Optional[int],
) -> dict:
    """One ``lanAttachList`` entry detaching the switch entirely."""
    return {
        "fabric": network.fabric_name,
        "networkName": network.name,
        "deployment": False,
        "serialNumber": attachment.serial_number,
        "vlan": attachment.vlan_id or network_vlan,
        "switchPorts": "",
        "detachSwitchPorts": "",
        "dot1QVlan": 0,
        "untagged": False,
        "extensionValues": "",
    }


def build_attachment_batch(network_name: str, entries: list[dict]) -> list[dict]:
    return [{"networkName": network_name, "lanAttachList": entries}]
