"""Network reconciler - create, update, read, delete and import.

Sequences the controller calls for one network:

    create:  segment id -> VLAN -> network -> attach -> deploy -> poll -> read
    update:  network -> attach (port delta) -> deploy -> poll -> read
    delete:  detach -> deploy -> poll -> delete network

Attach and deploy failures after the network object exists are reported
as PartialDeploymentError with ``deploy`` forced off locally; the network
object itself is never rolled back.
"""
import logging
from dataclasses import asdict

from ..client.rest import ControllerError, ControllerNotFoundError
from ..utils.audit_log import ChangeTracker
from .diff import diff_attachment_ports, same_ports
from .errors import (
    AttachmentError,
    NetworkNotFoundError,
    PartialDeploymentError,
    ValidationError,
)
from .mapper import (
    apply_remote_network,
    build_attach_entry,
    build_attachment_batch,
    build_detach_entry,
    build_network_payload,
    records_to_attachments,
)
from .poller import (
    any_deployed,
    fetch_records,
    is_deployed,
    switch_attach_status,
    wait_for_deployment,
)
from .schema import ATTACH_SUCCESS_MARKERS, Network, NetworkState

logger = logging.getLogger(__name__)

IMPORT_SEPARATOR = ":"


def parse_import_key(key: str) -> tuple[str, str]:
    """Split ``"<fabric>:<network>"`` into its two parts."""
    parts = key.split(IMPORT_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValidationError(
            f"Import key {key!r} must have the form '<fabric>:<network>'"
        )
    return parts[0], parts[1]


def _attach_failures(results: dict[str, str]) -> dict[str, str]:
    return {
        switch: status
        for switch, status in results.items()
        if status not in ATTACH_SUCCESS_MARKERS
    }


class NetworkReconciler:
    """
    Reconcile declared networks against a fabric controller.

    Usage:
        async with ControllerClient(config) as client:
            reconciler = NetworkReconciler(client)
            network = await reconciler.create(parse_network(declaration))

    Used as an async context manager the reconciler closes its client:
        async with inventory.get_reconciler("dc1") as reconciler:
            await reconciler.delete(network)
    """

    def __init__(self, client, poll_interval: float = 5, poll_timeout: float = 120):
        """
        Args:
            client: Controller client (see fabric_network.client)
            poll_interval: Seconds between deployment status checks
            poll_timeout: Give up waiting for propagation after this long
        """
        self.client = client
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.close()
        return False

    # === Validation ===

    @staticmethod
    def _validate_deploy(network: Network) -> None:
        if network.deploy and not network.attachments:
            raise ValidationError("attachments must be configured if deploy=true")

    # === Create ===

    async def create(self, network: Network) -> Network:
        """Create the network and, when ``deploy`` is set, attach and deploy it."""
        self._validate_deploy(network)
        fabric, name = network.fabric_name, network.name
        tracker = ChangeTracker(fabric, name)
        logger.info(f"Creating network {fabric}/{name}")

        if not network.network_id:
            network.network_id = await self.client.allocate_segment_id(fabric)
        if not network.profile.vlan_id:
            network.profile.vlan_id = await self.client.allocate_vlan(fabric)
            logger.info(f"Allocated VLAN {network.profile.vlan_id} for {fabric}/{name}")
        vlan = network.profile.vlan_id

        payload = build_network_payload(network, vlan)
        try:
            await self.client.create_network(fabric, payload)
        except ControllerError as e:
            tracker.log_change("create_network", payload, False, error=str(e))
            raise
        tracker.log_change("create_network", payload, True, after_state=asdict(network))

        network.id = name
        network.state = NetworkState.CREATED

        if network.deploy:
            entries = [
                build_attach_entry(network, attachment, vlan)
                for attachment in network.attachments
            ]
            await self._attach_and_deploy(network, entries, tracker, "created")

        logger.info(f"Created network {fabric}/{name} (state={network.state.value})")
        return await self.read(network)

    # === Update ===

    async def update(self, previous: Network, desired: Network) -> Network:
        """Apply ``desired`` over the existing network described by ``previous``.

        The segment id and VLAN are carried over; attachment port lists are
        sent as deltas against the previous declaration.
        """
        if (previous.fabric_name, previous.name) != (desired.fabric_name, desired.name):
            raise ValidationError(
                f"Network identity is immutable: "
                f"{previous.fabric_name}/{previous.name} -> {desired.fabric_name}/{desired.name}"
            )
        if previous.deploy and not desired.deploy:
            raise ValidationError("Deployed network can not be undeployed")
        self._validate_deploy(desired)

        fabric, name = desired.fabric_name, desired.name
        tracker = ChangeTracker(fabric, name)
        logger.info(f"Updating network {fabric}/{name}")

        desired.network_id = previous.network_id
        desired.id = previous.id or previous.name
        desired.state = previous.state
        if not desired.profile.vlan_id:
            desired.profile.vlan_id = previous.profile.vlan_id
        vlan = desired.profile.vlan_id

        payload = build_network_payload(desired, vlan)
        try:
            await self.client.update_network(fabric, desired.id, payload)
        except ControllerError as e:
            tracker.log_change("update_network", payload, False, error=str(e))
            raise
        tracker.log_change(
            "update_network", payload, True,
            before_state=asdict(previous), after_state=asdict(desired),
        )

        if desired.deploy:
            entries = []
            for attachment in desired.attachments:
                ports = diff_attachment_ports(
                    previous.attachments, desired.attachments, attachment.serial_number
                )
                entries.append(build_attach_entry(desired, attachment, vlan, ports))
            for dropped in previous.attachments:
                if desired.get_attachment(dropped.serial_number) is None:
                    logger.info(f"Detaching {dropped.serial_number} from {fabric}/{name}")
                    entries.append(build_detach_entry(desired, dropped, vlan))
            await self._attach_and_deploy(desired, entries, tracker, "updated")

        return await self.read(desired)

    # === Read ===

    async def read(self, network: Network) -> Network:
        """Refresh ``network`` from the controller.

        Network and profile attributes are overwritten. Declared
        attachments are reconciled against the attachment records: the
        attach flag always, the VLAN only where an override was declared,
        the ports only when they differ as a set.
        """
        fabric = network.fabric_name
        name = network.id or network.name

        try:
            doc = await self.client.get_network(fabric, name)
        except ControllerNotFoundError as e:
            network.id = None
            network.state = NetworkState.ABSENT
            raise NetworkNotFoundError(f"Network {fabric}/{name} not found") from e
        apply_remote_network(network, doc)

        try:
            records = await fetch_records(self.client, fabric, name)
        except ControllerError:
            network.deploy = False
            raise
        network.deploy = any_deployed(records)

        for attachment in network.attachments:
            status = switch_attach_status(records, attachment.serial_number)
            attachment.attach = status.attached
            if attachment.vlan_id != 0:
                attachment.vlan_id = status.vlan
            if status.ports is not None and not same_ports(attachment.switch_ports, status.ports):
                attachment.switch_ports = status.ports

        if network.deploy:
            network.state = NetworkState.DEPLOYED
        elif network.state not in (NetworkState.PROPAGATING, NetworkState.UNDEPLOYED):
            network.state = NetworkState.CREATED
        return network

    # === Delete ===

    async def delete(self, network: Network) -> None:
        """Detach all declared switches (if deployed), then delete the network."""
        fabric = network.fabric_name
        name = network.id or network.name
        tracker = ChangeTracker(fabric, name)
        logger.info(f"Deleting network {fabric}/{name}")

        if network.deploy and network.attachments:
            vlan = network.profile.vlan_id
            entries = [
                build_detach_entry(network, attachment, vlan)
                for attachment in network.attachments
            ]
            batch = build_attachment_batch(name, entries)
            results = await self.client.submit_attachments(fabric, batch)
            failures = _attach_failures(results)
            if failures:
                reason = "; ".join(f"{k}: {v}" for k, v in failures.items())
                tracker.log_change("detach", {"batch": batch}, False, error=reason)
                raise AttachmentError(f"Error while detachment: {reason}")
            tracker.log_change("detach", {"batch": batch}, True)

            if await self._trigger_deploy(network, tracker):
                try:
                    await wait_for_deployment(
                        self.client, fabric, name, expect=False,
                        interval=self.poll_interval, timeout=self.poll_timeout,
                    )
                except ControllerError as e:
                    # Undeploy status unknown; the network is deleted regardless
                    logger.warning(f"Undeploy status of {fabric}/{name} unavailable: {e}")
                    tracker.log_change("wait_undeploy", {}, False, error=str(e))

        try:
            await self.client.delete_network(fabric, name)
        except ControllerError as e:
            tracker.log_change("delete_network", {}, False, error=str(e))
            raise
        tracker.log_change("delete_network", {}, True, before_state=asdict(network))

        network.id = None
        network.state = NetworkState.ABSENT
        logger.info(f"Deleted network {fabric}/{name}")

    # === Import ===

    async def import_network(self, key: str) -> Network:
        """Build local state for an existing controller network.

        Args:
            key: ``"<fabric>:<network>"``
        """
        fabric, name = parse_import_key(key)
        logger.info(f"Importing network {fabric}/{name}")
        network = Network(fabric_name=fabric, name=name)

        try:
            doc = await self.client.get_network(fabric, name)
        except ControllerNotFoundError as e:
            raise NetworkNotFoundError(f"Network {fabric}/{name} not found") from e
        apply_remote_network(network, doc)

        try:
            network.deploy = await is_deployed(self.client, fabric, name)
        except ControllerError:
            network.deploy = False
            raise

        try:
            records = await fetch_records(self.client, fabric, name)
            network.attachments = records_to_attachments(records)
        except ControllerError as e:
            logger.warning(f"Attachment list of {fabric}/{name} unavailable: {e}")
            network.attachments = []

        network.state = NetworkState.DEPLOYED if network.deploy else NetworkState.CREATED
        return network

    # === Attach / deploy sequencing ===

    def _mark_undeployed(self, network: Network) -> None:
        network.deploy = False
        network.attachments = []
        network.state = NetworkState.UNDEPLOYED

    async def _attach_and_deploy(
        self,
        network: Network,
        entries: list[dict],
        tracker: ChangeTracker,
        verb: str,
    ) -> None:
        """Submit attachments, then trigger deploy and wait for propagation."""
        fabric, name = network.fabric_name, network.name
        batch = build_attachment_batch(name, entries)
        network.state = NetworkState.ATTACH_PENDING

        try:
            results = await self.client.submit_attachments(fabric, batch)
        except ControllerError as e:
            tracker.log_change("attach", {"batch": batch}, False, error=str(e))
            self._mark_undeployed(network)
            raise PartialDeploymentError(name, verb, str(e)) from e

        failures = _attach_failures(results)
        if failures:
            reason = "; ".join(f"{k}: {v}" for k, v in failures.items())
            tracker.log_change("attach", {"batch": batch}, False, error=reason)
            self._mark_undeployed(network)
            raise PartialDeploymentError(name, verb, reason)
        tracker.log_change("attach", {"batch": batch}, True)

        if not await self._trigger_deploy(network, tracker):
            return

        try:
            reached = await wait_for_deployment(
                self.client, fabric, name, expect=True,
                interval=self.poll_interval, timeout=self.poll_timeout,
            )
        except ControllerError as e:
            tracker.log_change("wait_deploy", {}, False, error=str(e))
            self._mark_undeployed(network)
            raise PartialDeploymentError(name, verb, str(e)) from e
        network.state = NetworkState.DEPLOYED if reached else NetworkState.PROPAGATING

    async def _trigger_deploy(self, network: Network, tracker: ChangeTracker) -> bool:
        """Kick deployment. A failed trigger forces ``deploy`` off but is not fatal."""
        fabric, name = network.fabric_name, network.id or network.name
        try:
            await self.client.deploy(fabric, name)
        except ControllerError as e:
            logger.warning(f"Deploy trigger for {fabric}/{name} failed: {e}")
            tracker.log_change("deploy", {}, False, error=str(e))
            network.deploy = False
            network.state = NetworkState.UNDEPLOYED
            return False
        tracker.log_change("deploy", {}, True)
        return True
