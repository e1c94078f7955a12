"""Parser for declared network state.

Converts the host's attribute dict into a strongly-typed Network and back.
Key names follow the resource attribute surface (``fabric_name``,
``arp_supp_flag``, ``attachments[].switch_ports`` ...).
"""
from typing import Any, Optional

from .errors import ValidationError
from .schema import (
    DEFAULT_EXTENSION_TEMPLATE,
    DEFAULT_TEMPLATE,
    L2_ONLY_VRF,
    Attachment,
    Network,
    NetworkProfile,
)


class ParseError(ValidationError):
    """Error parsing a network declaration."""
    pass


# Declaration key -> NetworkProfile attribute
PROFILE_KEYS = {
    "l2_only_flag": "l2_only",
    "vlan_id": "vlan_id",
    "vlan_name": "vlan_name",
    "ipv4_gateway": "ipv4_gateway",
    "ipv6_gateway": "ipv6_gateway",
    "description": "description",
    "mtu": "mtu",
    "secondary_gw_1": "secondary_gw_1",
    "secondary_gw_2": "secondary_gw_2",
    "arp_supp_flag": "arp_suppression",
    "ir_enable_flag": "ir_enabled",
    "mcast_group": "mcast_group",
    "dhcp_1": "dhcp_1",
    "dhcp_2": "dhcp_2",
    "dhcp_vrf": "dhcp_vrf",
    "loopback_id": "loopback_id",
    "tag": "tag",
    "trm_enable_flag": "trm_enabled",
    "rt_both_flag": "rt_both_auto",
    "l3_gateway_flag": "l3_gateway_on_border",
}

_INT_KEYS = {"vlan_id", "mtu", "loopback_id"}
_BOOL_KEYS = {
    "l2_only_flag", "arp_supp_flag", "ir_enable_flag",
    "trm_enable_flag", "rt_both_flag", "l3_gateway_flag",
}

# Declaration key -> Attachment attribute
ATTACHMENT_KEYS = {
    "serial_number": "serial_number",
    "vlan_id": "vlan_id",
    "attach": "attach",
    "switch_ports": "switch_ports",
    "dot1_qvlan": "dot1q_vlan",
    "untagged": "untagged",
    "free_form_config": "free_form_config",
    "extension_values": "extension_values",
    "instance_values": "instance_values",
}


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ParseError(f"Invalid integer for {field_name}: {value!r}")
    try:
        return int(value)
    except (ValueError, TypeError):
        raise ParseError(f"Invalid integer for {field_name}: {value!r}")


def _as_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ParseError(f"Invalid boolean for {field_name}: {value!r}")


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise ParseError(f"Invalid string for {field_name}: {value!r}")
    return str(value)


class NetworkParser:
    """Parse network declarations from dict/YAML format."""

    def parse(self, config: dict[str, Any]) -> Network:
        """
        Parse a declaration dict into a Network.

        Args:
            config: Dict with fabric_name, name, profile keys, attachments

        Returns:
            Network object

        Raises:
            ParseError: If the declaration is invalid
        """
        if not isinstance(config, dict):
            raise ParseError("Network declaration must be a mapping")

        fabric = config.get("fabric_name")
        name = config.get("name")
        if not fabric:
            raise ParseError("Missing required field: fabric_name")
        if not name:
            raise ParseError("Missing required field: name")

        network = Network(
            fabric_name=_as_str(fabric, "fabric_name"),
            name=_as_str(name, "name"),
            template=config.get("template") or DEFAULT_TEMPLATE,
            extension_template=config.get("extension_template") or DEFAULT_EXTENSION_TEMPLATE,
            vrf_name=config.get("vrf_name") or L2_ONLY_VRF,
            profile=self._parse_profile(config),
            deploy=_as_bool(config.get("deploy", True), "deploy"),
            attachments=self._parse_attachments(config.get("attachments") or []),
        )
        for key in ("display_name", "network_id", "service_template", "source"):
            if config.get(key) is not None:
                setattr(network, key, _as_str(config[key], key))
        return network

    def _parse_profile(self, config: dict[str, Any]) -> NetworkProfile:
        profile = NetworkProfile()
        for key, attr in PROFILE_KEYS.items():
            value = config.get(key)
            if value is None:
                continue
            if key in _INT_KEYS:
                value = _as_int(value, key)
            elif key in _BOOL_KEYS:
                value = _as_bool(value, key)
            else:
                value = _as_str(value, key)
            setattr(profile, attr, value)
        return profile

    def _parse_attachments(self, items: list) -> list[Attachment]:
        if not isinstance(items, list):
            raise ParseError("attachments must be a list")

        attachments: list[Attachment] = []
        seen: set[str] = set()
        for item in items:
            attachment = self._parse_single_attachment(item)
            if attachment.serial_number in seen:
                raise ParseError(
                    f"Duplicate attachment for switch {attachment.serial_number}"
                )
            seen.add(attachment.serial_number)
            attachments.append(attachment)
        return attachments

    def _parse_single_attachment(self, item: Optional[dict]) -> Attachment:
        if not isinstance(item, dict) or not item.get("serial_number"):
            raise ParseError(f"Attachment requires serial_number: {item!r}")

        attachment = Attachment(serial_number=_as_str(item["serial_number"], "serial_number"))
        if item.get("vlan_id") is not None:
            attachment.vlan_id = _as_int(item["vlan_id"], "vlan_id")
        if item.get("dot1_qvlan") is not None:
            attachment.dot1q_vlan = _as_int(item["dot1_qvlan"], "dot1_qvlan")
        if item.get("attach") is not None:
            attachment.attach = _as_bool(item["attach"], "attach")
        if item.get("untagged") is not None:
            attachment.untagged = _as_bool(item["untagged"], "untagged")

        ports = item.get("switch_ports") or []
        if isinstance(ports, str):
            ports = [p.strip() for p in ports.split(",") if p.strip()]
        if not isinstance(ports, list):
            raise ParseError(f"switch_ports must be a list: {ports!r}")
        attachment.switch_ports = [_as_str(p, "switch_ports") for p in ports]

        for key in ("free_form_config", "extension_values", "instance_values"):
            if item.get(key) is not None:
                setattr(attachment, key, _as_str(item[key], key))
        return attachment


def parse_network(config: dict[str, Any]) -> Network:
    return NetworkParser().parse(config)


def network_to_dict(network: Network) -> dict[str, Any]:
    """Render a Network back into the attribute dict the host consumes."""
    result: dict[str, Any] = {
        "id": network.id,
        "fabric_name": network.fabric_name,
        "name": network.name,
        "display_name": network.display_name,
        "network_id": network.network_id,
        "template": network.template,
        "extension_template": network.extension_template,
        "vrf_name": network.vrf_name,
        "service_template": network.service_template,
        "source": network.source,
        "deploy": network.deploy,
    }
    for key, attr in PROFILE_KEYS.items():
        result[key] = getattr(network.profile, attr)

    result["attachments"] = [
        {key: (list(getattr(a, attr)) if attr == "switch_ports" else getattr(a, attr))
         for key, attr in ATTACHMENT_KEYS.items()}
        for a in network.attachments
    ]
    return result
