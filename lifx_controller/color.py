"""
Color codec: user-facing color expressions to device-native HSBK.

Accepted inputs:
- a named color from NAMED_COLORS (case-insensitive)
- a "#RRGGBB" hex string
- a mapping with any of hue/saturation/brightness/kelvin in native device
  units (0-65535 for the first three, Kelvin for the last), or an HSBK

Structured input is never rescaled: hue 21845 means 120 degrees, exactly as
the device reports it from GetColor.
"""

import math
import re
from dataclasses import dataclass, replace
from typing import Any, Mapping, Union

from .exceptions import InvalidColorFormat

CHANNEL_MAX = 65535
KELVIN_MIN = 1500
KELVIN_MAX = 9000
# Devices ignore temperatures outside this range on SetColor
WRITE_KELVIN_MIN = 2500
WRITE_KELVIN_MAX = 9000
DEFAULT_KELVIN = 3500

_HEX_PATTERN = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_CHANNELS = ("hue", "saturation", "brightness", "kelvin")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class HSBK:
    """Device-native four channel color."""

    hue: int = 0
    saturation: int = CHANNEL_MAX
    brightness: int = CHANNEL_MAX
    kelvin: int = DEFAULT_KELVIN

    def __post_init__(self) -> None:
        for name in ("hue", "saturation", "brightness"):
            value = getattr(self, name)
            if not 0 <= value <= CHANNEL_MAX:
                raise ValueError(f"{name} out of range [0, {CHANNEL_MAX}]: {value}")
        if not KELVIN_MIN <= self.kelvin <= KELVIN_MAX:
            raise ValueError(f"kelvin out of range [{KELVIN_MIN}, {KELVIN_MAX}]: {self.kelvin}")

    def with_brightness(self, brightness: int) -> "HSBK":
        return replace(self, brightness=_clamp(brightness, 0, CHANNEL_MAX))

    def for_write(self) -> "HSBK":
        """Copy with kelvin clamped to what SetColor accepts."""
        return replace(self, kelvin=_clamp(self.kelvin, WRITE_KELVIN_MIN, WRITE_KELVIN_MAX))

    def to_dict(self) -> dict[str, int]:
        return {
            "hue": self.hue,
            "saturation": self.saturation,
            "brightness": self.brightness,
            "kelvin": self.kelvin,
        }


NAMED_COLORS: dict[str, HSBK] = {
    "red": HSBK(0, 65535, 65535, 3500),
    "orange": HSBK(5461, 65535, 65535, 3500),
    "yellow": HSBK(10922, 65535, 65535, 3500),
    "green": HSBK(21845, 65535, 65535, 3500),
    "cyan": HSBK(32768, 65535, 65535, 3500),
    "blue": HSBK(43690, 65535, 65535, 3500),
    "purple": HSBK(49151, 65535, 65535, 3500),
    "magenta": HSBK(54612, 65535, 65535, 3500),
    "pink": HSBK(60074, 32768, 65535, 3500),
    "white": HSBK(0, 0, 65535, 3500),
    "warm_white": HSBK(0, 0, 65535, 2700),
    "cool_white": HSBK(0, 0, 65535, 6500),
}


def rgb_to_hsb(red: float, green: float, blue: float) -> tuple[float, float, float]:
    """
    Convert RGB in [0, 1] to (hue degrees in [0, 360), saturation, brightness).

    Standard six-sector max/min formula.
    """
    high = max(red, green, blue)
    low = min(red, green, blue)
    diff = high - low

    if diff == 0:
        hue = 0.0
    elif high == red:
        hue = 60.0 * ((green - blue) / diff)
    elif high == green:
        hue = 60.0 * ((blue - red) / diff) + 120.0
    else:
        hue = 60.0 * ((red - green) / diff) + 240.0
    hue %= 360.0

    saturation = 0.0 if high == 0 else diff / high
    return hue, saturation, high


def parse_hex(value: str) -> HSBK:
    """Parse "#RRGGBB" into HSBK with the default kelvin."""
    match = _HEX_PATTERN.match(value.strip())
    if not match:
        raise InvalidColorFormat(f"Invalid hex color: {value!r} (expected #RRGGBB)")

    red, green, blue = (int(group, 16) / 255.0 for group in match.groups())
    hue, saturation, brightness = rgb_to_hsb(red, green, blue)
    return HSBK(
        hue=_clamp(int(round(hue * CHANNEL_MAX / 360.0)), 0, CHANNEL_MAX),
        saturation=int(round(saturation * CHANNEL_MAX)),
        brightness=int(round(brightness * CHANNEL_MAX)),
        kelvin=DEFAULT_KELVIN,
    )


def _channel(data: Mapping[str, Any], name: str, default: int, low: int, high: int) -> int:
    raw = data.get(name)
    if raw is None:
        return default
    # bool is an int subclass but never a valid channel
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidColorFormat(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(raw):
        raise InvalidColorFormat(f"{name} must be finite, got {raw!r}")
    return _clamp(int(round(raw)), low, high)


def parse_mapping(data: Mapping[str, Any]) -> HSBK:
    """Build HSBK from a partial mapping in native device units."""
    unknown = set(data) - set(_CHANNELS)
    if unknown:
        raise InvalidColorFormat(f"Unknown color fields: {', '.join(sorted(unknown))}")

    return HSBK(
        hue=_channel(data, "hue", 0, 0, CHANNEL_MAX),
        saturation=_channel(data, "saturation", CHANNEL_MAX, 0, CHANNEL_MAX),
        brightness=_channel(data, "brightness", CHANNEL_MAX, 0, CHANNEL_MAX),
        kelvin=_channel(data, "kelvin", DEFAULT_KELVIN, KELVIN_MIN, KELVIN_MAX),
    )


ColorInput = Union[str, Mapping[str, Any], HSBK]


def parse_color(value: ColorInput) -> HSBK:
    """
    Resolve any supported color expression to HSBK.

    Raises:
        InvalidColorFormat: for any other input shape
    """
    if isinstance(value, HSBK):
        return value

    if isinstance(value, str):
        text = value.strip()
        if text.startswith("#"):
            return parse_hex(text)
        named = NAMED_COLORS.get(text.lower())
        if named is None:
            raise InvalidColorFormat(f"Unknown color name: {value!r}")
        return named

    if isinstance(value, Mapping):
        return parse_mapping(value)

    raise InvalidColorFormat(f"Unsupported color input type: {type(value).__name__}")
