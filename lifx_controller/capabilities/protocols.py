"""
Data model for discovered lights.

A Device is the transport-level identity of a bulb; DeviceInfo holds the
attributes fetched from it after discovery. Both are keyed by serial.
"""

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from ..color import HSBK


class PowerState(str, Enum):
    """Last known power state."""
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"

    @classmethod
    def from_level(cls, level: int) -> "PowerState":
        return cls.ON if level > 0 else cls.OFF


@dataclass
class Device:
    """A light reachable on the network."""
    serial: str
    address: str
    port: int
    last_seen: float = field(default_factory=time.monotonic)


@dataclass
class DeviceInfo:
    """Attributes fetched from a device; each field is filled independently."""
    label: Optional[str] = None
    group: Optional[str] = None
    location: Optional[str] = None
    power: PowerState = PowerState.UNKNOWN
    color: Optional[HSBK] = None
    capabilities: Optional[dict[str, Any]] = None

    def copy(self) -> "DeviceInfo":
        capabilities = dict(self.capabilities) if self.capabilities is not None else None
        return replace(self, capabilities=capabilities)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "group": self.group,
            "location": self.location,
            "power": self.power.value,
            "color": self.color.to_dict() if self.color else None,
        }


@dataclass
class CommandResult:
    """Outcome of one operation on one device."""
    serial: str
    success: bool
    payload: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"serial": self.serial, "success": self.success}
        if self.success:
            data.update(self.payload or {})
        else:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DeviceEvent:
    """Published by the discovery loop when the registry changes."""
    kind: str  # "added" or "evicted"
    serial: str
    device: Optional[Device] = None
