"""
Command dispatch for lights.

An action is one logical operation (set power, set brightness, set color,
toggle). The dispatcher fans it out to a device set and collects one
CommandResult per device; a failing device never affects its siblings.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional, Sequence

from ..color import CHANNEL_MAX, HSBK
from ..config import DispatchConfig, settings
from ..transport.base import Transport
from ..transport.messages import GetColor, GetPower, LightState, SetColor, SetLightPower
from .protocols import CommandResult, Device, PowerState
from .registry import DeviceRegistry

logger = logging.getLogger("lifx.capabilities.actions")


class LightAction(ABC):
    """Base class for per-device operations."""

    name: ClassVar[str] = "action"

    @abstractmethod
    async def execute(
        self,
        device: Device,
        transport: Transport,
        registry: DeviceRegistry,
    ) -> dict[str, Any]:
        """Run against one device and return the success payload."""
        ...


class SetPowerAction(LightAction):
    name = "set_power"

    def __init__(self, on: bool, duration_ms: int = 0):
        self.on = on
        self.duration_ms = duration_ms

    async def execute(self, device, transport, registry):
        await transport.unicast_ack_only(SetLightPower(self.on, self.duration_ms), device)
        power = PowerState.ON if self.on else PowerState.OFF
        info = registry.info(device.serial)
        if info is not None:
            info.power = power
        return {"power": power.value}


class SetBrightnessAction(LightAction):
    """
    Change brightness while keeping hue, saturation and kelvin.

    The current color is read first; if that read fails nothing is written.
    """

    name = "set_brightness"

    def __init__(self, brightness: float, duration_ms: int = 0):
        if not 0.0 <= brightness <= 1.0:
            raise ValueError(f"brightness must be within [0, 1], got {brightness}")
        self.brightness = brightness
        self.duration_ms = duration_ms

    async def execute(self, device, transport, registry):
        state: LightState = await transport.unicast(GetColor(), device)
        color = state.color.with_brightness(int(round(self.brightness * CHANNEL_MAX))).for_write()
        await transport.unicast_ack_only(SetColor(color, self.duration_ms), device)

        info = registry.info(device.serial)
        if info is not None:
            info.color = color
            info.power = PowerState.from_level(state.power)
        return {"brightness": self.brightness}


class SetColorAction(LightAction):
    name = "set_color"

    def __init__(self, color: HSBK, duration_ms: int = 0):
        # Kelvin clamped once so the write, the cache and the payload agree
        self.color = color.for_write()
        self.duration_ms = duration_ms

    async def execute(self, device, transport, registry):
        await transport.unicast_ack_only(SetColor(self.color, self.duration_ms), device)
        info = registry.info(device.serial)
        if info is not None:
            info.color = self.color
        return {"color": self.color.to_dict()}


class ToggleAction(LightAction):
    """Read power, write its negation. Not atomic against external changes."""

    name = "toggle"

    def __init__(self, duration_ms: int = 0):
        self.duration_ms = duration_ms

    async def execute(self, device, transport, registry):
        level = await transport.unicast(GetPower(), device)
        previous = PowerState.from_level(level)
        new = PowerState.OFF if previous == PowerState.ON else PowerState.ON
        await transport.unicast_ack_only(
            SetLightPower(new == PowerState.ON, self.duration_ms), device
        )
        info = registry.info(device.serial)
        if info is not None:
            info.power = new
        return {"previous_state": previous.value, "new_state": new.value}


class CommandDispatcher:
    """
    Fans an action out to devices concurrently.

    Concurrency is capped per dispatcher and each device step has its own
    deadline. Results come back in input order regardless of completion order.
    """

    def __init__(
        self,
        transport: Transport,
        registry: DeviceRegistry,
        config: Optional[DispatchConfig] = None,
    ):
        self._transport = transport
        self._registry = registry
        self._config = config or settings.dispatch
        self._semaphore = asyncio.Semaphore(self._config.max_concurrency)

    async def dispatch(
        self,
        devices: Sequence[Device],
        action: LightAction,
    ) -> list[CommandResult]:
        if not devices:
            return []

        logger.info("Dispatching %s to %d devices", action.name, len(devices))
        results = await asyncio.gather(*(self._run_one(device, action) for device in devices))

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning("%s failed on %d/%d devices", action.name, failed, len(results))
        return list(results)

    async def _run_one(self, device: Device, action: LightAction) -> CommandResult:
        async with self._semaphore:
            try:
                payload = await asyncio.wait_for(
                    action.execute(device, self._transport, self._registry),
                    timeout=self._config.call_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("%s on %s timed out", action.name, device.serial)
                return CommandResult(
                    serial=device.serial,
                    success=False,
                    error=f"Timed out after {self._config.call_timeout:.1f}s",
                )
            except Exception as e:
                logger.warning("%s on %s failed: %s", action.name, device.serial, e)
                return CommandResult(
                    serial=device.serial,
                    success=False,
                    error=str(e) or type(e).__name__,
                )
        return CommandResult(serial=device.serial, success=True, payload=payload)
