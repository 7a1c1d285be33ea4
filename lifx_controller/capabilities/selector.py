"""
Selector parsing and resolution.

Grammar:
    all | <serial> | serial:<id> | label:<name> | group:<name> | location:<name>

A bare string without a colon is a serial. Unknown prefixes are accepted and
simply match nothing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..exceptions import DeviceNotFound
from .groups import GroupRegistry
from .protocols import Device, DeviceInfo
from .registry import DeviceRegistry

logger = logging.getLogger("lifx.capabilities.selector")

KNOWN_TYPES = ("all", "serial", "label", "group", "location")


@dataclass(frozen=True)
class Selector:
    """Parsed filter expression."""
    type: str
    value: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        if self.value is None:
            return {"type": self.type}
        return {"type": self.type, "value": self.value}

    def __str__(self) -> str:
        return self.type if self.value is None else f"{self.type}:{self.value}"


def parse_selector(text: Optional[str] = None, default: str = "all") -> Selector:
    """Parse a selector string; empty input falls back to `default`."""
    if text is None or not text.strip():
        text = default
    text = text.strip()

    if text.lower() == "all":
        return Selector("all")

    if ":" not in text:
        return Selector("serial", text.lower())

    prefix, value = text.split(":", 1)
    prefix = prefix.strip().lower()
    if prefix == "serial":
        value = value.lower()
    if prefix not in KNOWN_TYPES:
        logger.debug("Unknown selector prefix '%s' (matches nothing)", prefix)
    return Selector(prefix, value)


def _matches(
    selector: Selector,
    serial: str,
    group_members: Optional[set[str]],
    location_members: Optional[set[str]],
    info: DeviceInfo,
) -> bool:
    if selector.type == "all":
        return True
    if selector.type == "serial":
        return serial == selector.value
    if selector.type == "label":
        return info.label == selector.value
    if selector.type == "group":
        if group_members is not None:
            return serial in group_members
        return info.group == selector.value
    if selector.type == "location":
        if location_members is not None:
            return serial in location_members
        return info.location == selector.value
    return False


async def resolve(
    selector: Selector,
    snapshot: Mapping[str, DeviceInfo],
    registry: DeviceRegistry,
    groups: Optional[GroupRegistry] = None,
    locations: Optional[GroupRegistry] = None,
) -> list[Device]:
    """
    Turn a selector and a registry snapshot into live devices.

    Candidates whose live lookup fails (evicted between the snapshot and now)
    are dropped with a warning. An empty result is not an error.
    """
    group_members = groups.members(selector.value) if groups and selector.type == "group" else None
    location_members = (
        locations.members(selector.value) if locations and selector.type == "location" else None
    )

    devices: list[Device] = []
    for serial, info in snapshot.items():
        if not _matches(selector, serial, group_members, location_members, info):
            continue
        try:
            devices.append(await registry.get(serial))
        except DeviceNotFound:
            logger.warning("Device %s matched %s but is no longer registered", serial, selector)

    logger.debug("Selector %s resolved to %d devices", selector, len(devices))
    return devices
