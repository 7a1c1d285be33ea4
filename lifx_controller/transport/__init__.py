"""
Device transport: typed LIFX requests and the lifx-async LAN adapter.
"""

from .base import ServiceCallback, Transport
from .messages import (
    GetColor,
    GetGroup,
    GetLabel,
    GetLocation,
    GetPower,
    GetService,
    GroupState,
    LightState,
    Message,
    SetColor,
    SetLightPower,
    SetPower,
)
from .lan import LanTransport

__all__ = [
    "Transport",
    "ServiceCallback",
    "LanTransport",
    # Messages
    "Message",
    "GetService",
    "GetLabel",
    "GetGroup",
    "GetLocation",
    "GetPower",
    "GetColor",
    "SetPower",
    "SetColor",
    "SetLightPower",
    # Replies
    "GroupState",
    "LightState",
]
