"""
LIFX LAN light controller.

Discovers lights by UDP broadcast, keeps a registry of their attributes,
resolves selectors to device sets and dispatches commands concurrently.
"""

from .controller import LightController, get_controller
from .exceptions import (
    DeviceNotFound,
    InvalidColorFormat,
    LifxControllerError,
    RemoteCommandFailure,
    UnknownOperation,
)

__version__ = "0.1.0"

__all__ = [
    "LightController",
    "get_controller",
    "LifxControllerError",
    "InvalidColorFormat",
    "DeviceNotFound",
    "RemoteCommandFailure",
    "UnknownOperation",
]
