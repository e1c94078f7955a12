"""Deployment status poller.

Answers "is this network deployed?" and "what does the controller say
about this switch?" from the attachment status documents, and waits for
deployment to propagate after a deploy trigger.
"""
import logging
from typing import Iterable

from ..utils.polling import poll_until
from .mapper import parse_attachment_records
from .schema import AttachmentRecord, SwitchAttachStatus

logger = logging.getLogger(__name__)


def any_deployed(records: Iterable[AttachmentRecord]) -> bool:
    """True if at least one record is in the DEPLOYED state."""
    return any(record.deployed for record in records)


async def fetch_records(client, fabric: str, network: str) -> list[AttachmentRecord]:
    document = await client.get_attachments(fabric, network)
    return parse_attachment_records(document)


async def is_deployed(client, fabric: str, network: str) -> bool:
    """Fetch the attachment records and report whether any is deployed."""
    return any_deployed(await fetch_records(client, fabric, network))


def switch_attach_status(
    records: Iterable[AttachmentRecord],
    serial: str,
) -> SwitchAttachStatus:
    """Attach facts for ``serial``.

    ``ports`` is None when the controller reported no port list, which
    callers treat as "keep the local list" rather than "clear it".
    """
    for record in records:
        if record.serial_number != serial:
            continue
        if not record.attached:
            return SwitchAttachStatus(attached=False)
        return SwitchAttachStatus(
            attached=True,
            ports=list(record.ports) if record.ports is not None else None,
            vlan=record.vlan_id or 0,
        )
    return SwitchAttachStatus(attached=False)


async def wait_for_deployment(
    client,
    fabric: str,
    network: str,
    expect: bool = True,
    interval: float = 5,
    timeout: float = 120,
) -> bool:
    """Poll until the deployed verdict equals ``expect``.

    Returns:
        True if the expected verdict was observed before the timeout
    """
    async def check() -> bool:
        return await is_deployed(client, fabric, network)

    reached, deployed = await poll_until(
        check,
        lambda value: value == expect,
        interval=interval,
        timeout=timeout,
    )
    if reached:
        logger.info(f"Network {fabric}/{network}: deployed={deployed}")
    else:
        logger.warning(
            f"Network {fabric}/{network}: still propagating after {timeout}s "
            f"(deployed={deployed}, expected {expect})"
        )
    return reached
