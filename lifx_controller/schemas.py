"""
Request models for controller operations.

Arguments coming from the tool layer are validated here before anything is
sent to a device; a ValidationError is a request-level failure.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class ListLightsRequest(BaseModel):
    """List known lights matching a selector."""
    selector: str = "all"


class SetPowerRequest(BaseModel):
    """Turn lights on or off."""
    selector: str
    power: Literal["on", "off"]
    duration_ms: int = Field(default=0, ge=0, description="Transition duration in milliseconds")

    @field_validator("power", mode="before")
    @classmethod
    def _normalize_power(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "on" if value else "off"
        if isinstance(value, str):
            return value.strip().lower()
        return value


class SetBrightnessRequest(BaseModel):
    """Change brightness, keeping the current hue, saturation and kelvin."""
    selector: str
    brightness: float = Field(ge=0.0, le=1.0, description="Brightness from 0.0 to 1.0")
    duration_ms: int = Field(default=0, ge=0)


class SetColorRequest(BaseModel):
    """Set all four color channels."""
    selector: str
    color: Union[str, dict[str, Any]] = Field(
        description="Color name, #RRGGBB, or {hue, saturation, brightness, kelvin} in device units",
    )
    duration_ms: int = Field(default=0, ge=0)


class ToggleRequest(BaseModel):
    """Invert the power state of each light."""
    selector: str
    duration_ms: int = Field(default=0, ge=0)


class DeviceRequest(BaseModel):
    """Operation on exactly one serial."""
    serial: str = Field(min_length=1)


class DiscoverRequest(BaseModel):
    """Broadcast immediately and wait for replies."""
    wait: Optional[float] = Field(default=None, ge=0.0, le=30.0)


class EmptyRequest(BaseModel):
    pass
