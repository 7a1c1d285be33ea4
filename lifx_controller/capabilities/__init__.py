"""
Light capabilities: data model, registries, selectors and command dispatch.

This module provides:
- Color codec and the device data model
- Device and group registries
- Selector parsing and resolution
- Action dispatch framework for executing commands on device sets
"""

from ..color import HSBK, NAMED_COLORS, parse_color
from .protocols import CommandResult, Device, DeviceEvent, DeviceInfo, PowerState
from .registry import DeviceRegistry
from .groups import Group, GroupRegistry
from .selector import Selector, parse_selector, resolve
from .actions import (
    CommandDispatcher,
    LightAction,
    SetBrightnessAction,
    SetColorAction,
    SetPowerAction,
    ToggleAction,
)

__all__ = [
    # Color
    "HSBK",
    "NAMED_COLORS",
    "parse_color",
    # Model
    "Device",
    "DeviceInfo",
    "DeviceEvent",
    "PowerState",
    "CommandResult",
    # Registries
    "DeviceRegistry",
    "Group",
    "GroupRegistry",
    # Selectors
    "Selector",
    "parse_selector",
    "resolve",
    # Actions
    "CommandDispatcher",
    "LightAction",
    "SetPowerAction",
    "SetBrightnessAction",
    "SetColorAction",
    "ToggleAction",
]
