"""Schema definitions for network reconciliation.

Typed value objects for the declared network, its profile and its
per-switch attachments, plus the typed view of controller attachment
status documents.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Routing-domain sentinel meaning "layer-2 only network"
L2_ONLY_VRF = "NA"

DEFAULT_TEMPLATE = "Default_Network_Universal"
DEFAULT_EXTENSION_TEMPLATE = "Default_Network_Extension_Universal"

# lanAttachState value of a fully propagated attachment
DEPLOYED_STATE = "DEPLOYED"

# The only per-switch attachment results the controller reports on success
ATTACH_SUCCESS_MARKERS = frozenset({
    "SUCCESS",
    "SUCCESS Peer attach Reponse :  SUCCESS",
})


class NetworkState(str, Enum):
    """Lifecycle of a managed network as seen by the reconciler."""
    ABSENT = "absent"
    CREATED = "created"
    ATTACH_PENDING = "attach_pending"
    DEPLOYED = "deployed"
    PROPAGATING = "propagating"  # deploy triggered, not yet observed
    UNDEPLOYED = "undeployed"    # attach/deploy failed, deploy forced off


@dataclass
class NetworkProfile:
    """Profile embedded in the network document (networkTemplateConfig)."""
    l2_only: bool = False
    vlan_id: Optional[int] = None
    vlan_name: Optional[str] = None
    ipv4_gateway: Optional[str] = None
    ipv6_gateway: Optional[str] = None
    description: Optional[str] = None
    mtu: Optional[int] = None
    secondary_gw_1: Optional[str] = None
    secondary_gw_2: Optional[str] = None
    arp_suppression: bool = False
    ir_enabled: bool = False
    mcast_group: Optional[str] = None
    dhcp_1: Optional[str] = None
    dhcp_2: Optional[str] = None
    dhcp_vrf: Optional[str] = None
    loopback_id: Optional[int] = None
    tag: Optional[str] = None
    trm_enabled: bool = False
    rt_both_auto: bool = False
    l3_gateway_on_border: bool = False


@dataclass
class Attachment:
    """Binding of the network to one switch."""
    serial_number: str
    vlan_id: int = 0  # 0 = inherit network VLAN
    attach: bool = True
    switch_ports: list[str] = field(default_factory=list)
    dot1q_vlan: int = 0
    untagged: bool = False
    free_form_config: Optional[str] = None
    extension_values: Optional[str] = None
    instance_values: Optional[str] = None


@dataclass
class Network:
    """Declared (and, after reads, observed) state of one network."""
    fabric_name: str
    name: str
    display_name: Optional[str] = None
    network_id: Optional[str] = None
    template: str = DEFAULT_TEMPLATE
    extension_template: str = DEFAULT_EXTENSION_TEMPLATE
    vrf_name: str = L2_ONLY_VRF
    service_template: Optional[str] = None
    source: Optional[str] = None
    profile: NetworkProfile = field(default_factory=NetworkProfile)
    deploy: bool = True
    attachments: list[Attachment] = field(default_factory=list)
    # Set once the controller object exists
    id: Optional[str] = None
    state: NetworkState = NetworkState.ABSENT

    @property
    def is_layer2_only(self) -> bool:
        return self.vrf_name == L2_ONLY_VRF

    def get_attachment(self, serial: str) -> Optional[Attachment]:
        for attachment in self.attachments:
            if attachment.serial_number == serial:
                return attachment
        return None


@dataclass
class AttachmentRecord:
    """One attachment status document returned by the controller."""
    serial_number: str
    lan_attach_state: Optional[str] = None
    attached: bool = False
    vlan_id: Optional[int] = None
    ports: Optional[list[str]] = None  # None = controller reported no port list
    switch_name: Optional[str] = None

    @property
    def deployed(self) -> bool:
        return self.lan_attach_state == DEPLOYED_STATE


@dataclass
class SwitchAttachStatus:
    """Attach facts for one switch derived from the attachment records."""
    attached: bool = False
    ports: Optional[list[str]] = None
    vlan: int = 0


@dataclass
class PortDiff:
    """Ports to add to and remove from one switch attachment."""
    to_add: list[str] = field(default_factory=list)
    to_remove: list[str] = field(default_factory=list)

    @property
    def no_change(self) -> bool:
        return not self.to_add and not self.to_remove

    def as_wire(self) -> dict[str, str]:
        """Encode for the attachment payload.

        The controller overwrites port lists on every attachment call, so
        "no change" must be sent as an explicit empty string.
        """
        return {
            "switchPorts": ",".join(self.to_add),
            "detachSwitchPorts": ",".join(self.to_remove),
        }
