"""Tests for the remote state mapper."""
import json

import pytest

from fabric_network.reconcile.mapper import (
    apply_remote_network,
    build_attach_entry,
    build_attachment_batch,
    build_detach_entry,
    build_network_payload,
    build_profile_payload,
    parse_attachment_records,
    parse_bool,
    parse_int,
    records_to_attachments,
)
from fabric_network.reconcile.schema import Attachment, Network, NetworkProfile, PortDiff


def network_doc(profile: dict, **fields) -> dict:
    doc = {
        "fabric": "fabric1",
        "networkName": "net1",
        "displayName": "net1",
        "networkId": "30001",
        "networkTemplate": "Default_Network_Universal",
        "networkExtensionTemplate": "Default_Network_Extension_Universal",
        "vrf": "tenant-a",
        "serviceNetworkTemplate": "null",
        "source": "null",
        "networkTemplateConfig": json.dumps(profile),
    }
    doc.update(fields)
    return doc


class TestWireParsing:
    """Tests for wire value parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("100", 100), (100, 100), (100.0, 100), (" 7 ", 7),
        ("abc", None), ("", None), (None, None), (True, None),
    ])
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("True", True), ("1", True), (True, True),
        ("false", False), ("F", False), (False, False),
        ("maybe", None), (None, None),
    ])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) == expected


class TestApplyRemoteNetwork:
    """Tests for inbound network mapping."""

    def test_populates_network_and_profile(self):
        network = Network("fabric1", "net1")
        doc = network_doc({
            "vlanId": "2301",
            "vlanName": "web",
            "gatewayIpAddress": "10.1.1.1/24",
            "mtu": "9216",
            "suppressArp": "true",
            "enableIR": "false",
            "loopbackId": "",
            "tag": "12345",
        })

        apply_remote_network(network, doc)

        assert network.id == "net1"
        assert network.network_id == "30001"
        assert network.vrf_name == "tenant-a"
        assert network.profile.vlan_id == 2301
        assert network.profile.vlan_name == "web"
        assert network.profile.ipv4_gateway == "10.1.1.1/24"
        assert network.profile.mtu == 9216
        assert network.profile.arp_suppression is True
        assert network.profile.ir_enabled is False
        assert network.profile.loopback_id is None
        assert network.profile.tag == "12345"

    def test_missing_flags_default_to_false(self):
        """Absent boolean flags read back as False, not unset."""
        network = Network("fabric1", "net1")
        network.profile = NetworkProfile(
            l2_only=True, arp_suppression=True, ir_enabled=True,
            trm_enabled=True, rt_both_auto=True, l3_gateway_on_border=True,
        )

        apply_remote_network(network, network_doc({"vlanId": "2301"}))

        profile = network.profile
        assert profile.l2_only is False
        assert profile.arp_suppression is False
        assert profile.ir_enabled is False
        assert profile.trm_enabled is False
        assert profile.rt_both_auto is False
        assert profile.l3_gateway_on_border is False

    def test_unparseable_number_leaves_value(self):
        """A garbage number keeps the local value instead of failing."""
        network = Network("fabric1", "net1")
        network.profile.mtu = 1500

        apply_remote_network(network, network_doc({"mtu": "jumbo"}))

        assert network.profile.mtu == 1500

    def test_null_sentinel_not_copied(self):
        """The literal "null" means absent; empty string is still a value."""
        network = Network("fabric1", "net1", service_template="svc", source="keep")

        apply_remote_network(network, network_doc({}, source=""))

        assert network.service_template == "svc"
        assert network.source == ""

    def test_bad_profile_json_leaves_profile(self):
        network = Network("fabric1", "net1")
        network.profile.vlan_id = 42

        apply_remote_network(network, network_doc({}, networkTemplateConfig="{not json"))

        assert network.profile.vlan_id == 42
        assert network.network_id == "30001"


class TestOutboundPayloads:
    """Tests for outbound payload construction."""

    def test_l2_only_derived_from_vrf(self):
        """The NA routing domain forces the layer-2-only flag."""
        l2 = Network("fabric1", "net1", vrf_name="NA")
        l3 = Network("fabric1", "net2", vrf_name="tenant-a")
        l3.profile.l2_only = True

        assert build_profile_payload(l2, 100)["isLayer2Only"] is True
        assert build_profile_payload(l3, 100)["isLayer2Only"] is False

    def test_network_payload(self):
        network = Network("fabric1", "net1", network_id="30001", vrf_name="tenant-a")
        network.profile.ipv4_gateway = "10.1.1.1/24"

        payload = build_network_payload(network, 2301)
        profile = json.loads(payload["networkTemplateConfig"])

        assert payload["displayName"] == "net1"
        assert payload["networkId"] == "30001"
        assert payload["vrf"] == "tenant-a"
        assert "serviceNetworkTemplate" not in payload
        assert profile["vlanId"] == 2301
        assert profile["segmentId"] == "30001"
        assert profile["gatewayIpAddress"] == "10.1.1.1/24"

    def test_round_trip_is_stable(self):
        """Reading a document and writing it back keeps VLAN, gateways and flags."""
        original = {
            "vlanId": 2301,
            "gatewayIpAddress": "10.1.1.1/24",
            "gatewayIpV6Address": "2001:db8::1/64",
            "suppressArp": True,
            "enableIR": False,
            "trmEnabled": True,
            "rtBothAuto": False,
            "enableL3OnBorder": True,
            "isLayer2Only": False,
        }
        network = Network("fabric1", "net1")
        apply_remote_network(network, network_doc(original))

        rebuilt = build_profile_payload(network, network.profile.vlan_id)

        for key, value in original.items():
            assert rebuilt[key] == value

    def test_attach_entry_inherits_network_vlan(self):
        network = Network("fabric1", "net1")
        attachment = Attachment("SW1", switch_ports=["Eth1/1", "Eth1/2"])

        entry = build_attach_entry(network, attachment, 2301)

        assert entry["vlan"] == 2301
        assert entry["deployment"] is True
        assert entry["switchPorts"] == "Eth1/1,Eth1/2"
        assert "detachSwitchPorts" not in entry
        assert "freeformConfig" not in entry

    def test_attach_entry_override_and_delta(self):
        network = Network("fabric1", "net1")
        attachment = Attachment("SW1", vlan_id=300, free_form_config="spanning-tree port type edge")

        entry = build_attach_entry(network, attachment, 2301, PortDiff(to_add=["Eth1/2"]))

        assert entry["vlan"] == 300
        assert entry["switchPorts"] == "Eth1/2"
        assert entry["detachSwitchPorts"] == ""
        assert entry["freeformConfig"] == "spanning-tree port type edge"

    def test_detach_entry_is_neutral(self):
        network = Network("fabric1", "net1")
        entry = build_detach_entry(network, Attachment("SW1", switch_ports=["Eth1/1"]), 2301)

        assert entry["deployment"] is False
        assert entry["vlan"] == 2301
        assert entry["switchPorts"] == ""
        assert entry["detachSwitchPorts"] == ""
        assert entry["dot1QVlan"] == 0
        assert entry["untagged"] is False

    def test_batch_shape(self):
        assert build_attachment_batch("net1", [{"a": 1}]) == [
            {"networkName": "net1", "lanAttachList": [{"a": 1}]}
        ]


class TestAttachmentRecords:
    """Tests for attachment status document parsing."""

    def test_flat_records(self):
        records = parse_attachment_records([
            {
                "switchSerialNo": "SW1",
                "lanAttachState": "DEPLOYED",
                "isLanAttached": True,
                "vlanId": 2301,
                "portNames": "Eth1/1, Eth1/2",
            },
            {
                "switchSerialNo": "SW2",
                "lanAttachState": "NA",
                "isLanAttached": "false",
                "vlanId": "null",
                "portNames": "null",
            },
        ])

        assert records[0].deployed
        assert records[0].attached
        assert records[0].ports == ["Eth1/1", "Eth1/2"]
        assert records[1].attached is False
        assert records[1].vlan_id is None
        assert records[1].ports is None

    def test_grouped_records_are_flattened(self):
        records = parse_attachment_records([
            {"networkName": "net1", "lanAttachList": [
                {"switchSerialNo": "SW1", "isLanAttached": True},
                {"switchSerialNo": "SW2", "isLanAttached": False},
            ]},
        ])
        assert [r.serial_number for r in records] == ["SW1", "SW2"]

    def test_records_without_serial_skipped(self):
        assert parse_attachment_records([{"lanAttachState": "DEPLOYED"}, "junk"]) == []

    def test_records_to_attachments_only_attached(self):
        records = parse_attachment_records([
            {"switchSerialNo": "SW1", "isLanAttached": True, "vlanId": 2301,
             "portNames": "Eth1/1"},
            {"switchSerialNo": "SW2", "isLanAttached": False},
        ])

        attachments = records_to_attachments(records)

        assert len(attachments) == 1
        assert attachments[0].serial_number == "SW1"
        assert attachments[0].vlan_id == 2301
        assert attachments[0].switch_ports == ["Eth1/1"]
