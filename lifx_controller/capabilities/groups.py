"""
Group and location membership index.

Devices report their group (and location) as an opaque id plus a label.
The selector resolver looks members up by label.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ..transport.messages import GroupState

logger = logging.getLogger("lifx.capabilities.groups")


@dataclass
class Group:
    """A group or location with its member serials."""
    id: str
    label: str
    members: set[str] = field(default_factory=set)
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "members": sorted(self.members),
        }


class GroupRegistry:
    """Index of device membership by group identity."""

    def __init__(self, kind: str = "group") -> None:
        self.kind = kind
        self._groups: dict[str, Group] = {}
        self._membership: dict[str, str] = {}  # serial -> group id

    def register(self, serial: str, state: GroupState) -> Group:
        """
        Associate a device with a group.

        A device reporting a different group than before is moved; the group
        label follows the most recently updated report.
        """
        previous = self._membership.get(serial)
        if previous is not None and previous != state.id:
            old = self._groups.get(previous)
            if old is not None:
                old.members.discard(serial)
            logger.info("Device %s moved %s %s -> %s", serial, self.kind, previous, state.id)

        group = self._groups.get(state.id)
        if group is None:
            group = Group(id=state.id, label=state.label, updated_at=state.updated_at)
            self._groups[state.id] = group
            logger.info("%s added: %s (%s)", self.kind.capitalize(), state.label, state.id)
        elif state.updated_at >= group.updated_at and state.label != group.label:
            logger.info(
                "%s changed: %s -> %s (%s)",
                self.kind.capitalize(), group.label, state.label, state.id,
            )
            group.label = state.label
            group.updated_at = state.updated_at

        group.members.add(serial)
        self._membership[serial] = state.id
        return group

    def members(self, label: str) -> set[str]:
        """Serials of every group whose label is exactly `label`."""
        found: set[str] = set()
        for group in self._groups.values():
            if group.label == label:
                found |= group.members
        return found

    def group_of(self, serial: str) -> Group | None:
        group_id = self._membership.get(serial)
        return self._groups.get(group_id) if group_id else None

    def forget(self, serial: str) -> None:
        """Drop a device's membership (used when the device is evicted)."""
        group_id = self._membership.pop(serial, None)
        if group_id and group_id in self._groups:
            self._groups[group_id].members.discard(serial)

    def list(self) -> list[Group]:
        return list(self._groups.values())
