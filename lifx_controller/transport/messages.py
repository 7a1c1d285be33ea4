"""
Typed LIFX requests and their replies.

Each request knows how to run itself against a lifx-async device handle and
converts the library's values into the controller's own types. Colors cross
this boundary in device units on our side (0-65535 channels) and in the
library's units on the other (hue degrees, 0-1 fractions).

Protocol documentation: https://lan.developer.lifx.com/docs/packet-contents
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from lifx import HSBK as LifxHSBK

from ..color import CHANNEL_MAX, HSBK, KELVIN_MAX, KELVIN_MIN
from ..exceptions import TransportError

if TYPE_CHECKING:
    from lifx import Light

POWER_ON = 65535
POWER_OFF = 0


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def from_lifx_color(color: Any) -> HSBK:
    """Library color (degrees, fractions) to device units."""
    return HSBK(
        hue=_clamp(int(round(color.hue * CHANNEL_MAX / 360.0)), 0, CHANNEL_MAX),
        saturation=_clamp(int(round(color.saturation * CHANNEL_MAX)), 0, CHANNEL_MAX),
        brightness=_clamp(int(round(color.brightness * CHANNEL_MAX)), 0, CHANNEL_MAX),
        # Some firmware reports 0 kelvin for pure colors
        kelvin=_clamp(int(color.kelvin), KELVIN_MIN, KELVIN_MAX),
    )


def to_lifx_color(color: HSBK) -> LifxHSBK:
    """Device units to the library's color type, kelvin clamped for writing."""
    color = color.for_write()
    return LifxHSBK(
        hue=color.hue * 360.0 / CHANNEL_MAX,
        saturation=color.saturation / CHANNEL_MAX,
        brightness=color.brightness / CHANNEL_MAX,
        kelvin=color.kelvin,
    )


def _power_level(power: Any) -> int:
    if isinstance(power, bool):
        return POWER_ON if power else POWER_OFF
    return int(power)


def _collection_state(info: Any) -> "GroupState":
    # Older lifx-async releases name the id field after the collection
    ident = getattr(info, "uuid", None) or getattr(info, "group", None) or getattr(info, "location", "")
    if isinstance(ident, (bytes, bytearray)):
        ident = ident.hex()
    return GroupState(
        id=str(ident),
        label=info.label,
        updated_at=int(getattr(info, "updated_at", 0) or 0),
    )


@dataclass(frozen=True)
class GroupState:
    """StateGroup / StateLocation reply."""
    id: str
    label: str
    updated_at: int = 0


@dataclass(frozen=True)
class LightState:
    color: HSBK
    power: int
    label: str


class Message:
    """
    Base class for requests.

    TYPE is the LAN protocol packet number, kept for logs. Messages with
    has_reply False are acknowledged writes.
    """

    TYPE: ClassVar[int]
    has_reply: ClassVar[bool] = True

    @property
    def name(self) -> str:
        return type(self).__name__

    async def send(self, light: "Light") -> Any:
        raise TransportError(f"{self.name} cannot be sent to a single device")


@dataclass(frozen=True)
class GetService(Message):
    """Discovery broadcast; only valid for Transport.broadcast."""
    TYPE: ClassVar[int] = 2


@dataclass(frozen=True)
class GetPower(Message):
    TYPE: ClassVar[int] = 20

    async def send(self, light: "Light") -> int:
        return _power_level(await light.get_power())


@dataclass(frozen=True)
class SetPower(Message):
    TYPE: ClassVar[int] = 21
    has_reply: ClassVar[bool] = False

    on: bool = True

    async def send(self, light: "Light") -> None:
        await light.set_power(self.on)


@dataclass(frozen=True)
class GetLabel(Message):
    TYPE: ClassVar[int] = 23

    async def send(self, light: "Light") -> str:
        return await light.get_label()


@dataclass(frozen=True)
class GetLocation(Message):
    TYPE: ClassVar[int] = 48

    async def send(self, light: "Light") -> GroupState:
        return _collection_state(await light.get_location())


@dataclass(frozen=True)
class GetGroup(Message):
    TYPE: ClassVar[int] = 51

    async def send(self, light: "Light") -> GroupState:
        return _collection_state(await light.get_group())


@dataclass(frozen=True)
class GetColor(Message):
    TYPE: ClassVar[int] = 101

    async def send(self, light: "Light") -> LightState:
        color, power, label = await light.get_color()
        return LightState(
            color=from_lifx_color(color),
            power=_power_level(power),
            label=label or "",
        )


@dataclass(frozen=True)
class SetColor(Message):
    TYPE: ClassVar[int] = 102
    has_reply: ClassVar[bool] = False

    color: HSBK = HSBK()
    duration_ms: int = 0

    async def send(self, light: "Light") -> None:
        await light.set_color(to_lifx_color(self.color), duration=self.duration_ms / 1000.0)


@dataclass(frozen=True)
class SetLightPower(Message):
    TYPE: ClassVar[int] = 117
    has_reply: ClassVar[bool] = False

    on: bool = True
    duration_ms: int = 0

    async def send(self, light: "Light") -> None:
        await light.set_power(self.on, duration=self.duration_ms / 1000.0)
