"""Attachment diff engine.

Computes which switch ports to add to and remove from an attachment when a
declared port list changes, so attachment calls only carry the delta.
"""
from typing import Iterable, Optional

from .schema import Attachment, PortDiff


def _difference(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Ports in ``a`` but not in ``b``, first-seen order, no duplicates."""
    exclude = set(b)
    result = []
    for port in a:
        if port not in exclude:
            exclude.add(port)
            result.append(port)
    return result


def diff_ports(old: Iterable[str], new: Iterable[str]) -> PortDiff:
    """Diff two port lists of the same switch.

    Returns:
        PortDiff with ``to_add = new - old`` and ``to_remove = old - new``
    """
    old = list(old)
    new = list(new)
    return PortDiff(to_add=_difference(new, old), to_remove=_difference(old, new))


def _ports_for(attachments: Iterable[Attachment], serial: str) -> list[str]:
    for attachment in attachments:
        if attachment.serial_number == serial:
            return list(attachment.switch_ports)
    return []


def diff_attachment_ports(
    previous: Optional[Iterable[Attachment]],
    desired: Iterable[Attachment],
    serial: str,
) -> PortDiff:
    """Diff the declared ports of ``serial`` between two attachment sets.

    A switch missing from ``previous`` (or no previous set at all) counts
    as having no ports.
    """
    old_ports = _ports_for(previous or [], serial)
    new_ports = _ports_for(desired, serial)
    return diff_ports(old_ports, new_ports)


def same_ports(a: Optional[Iterable[str]], b: Optional[Iterable[str]]) -> bool:
    """Order-insensitive port list comparison."""
    return set(a or []) == set(b or [])
