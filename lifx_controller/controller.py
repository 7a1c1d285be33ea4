"""
LightController - the server context.

Owns the transport, the registries, the discovery loop, the attribute
fetcher and the dispatcher, and exposes the operations the tool layer calls.
Several controllers can coexist (e.g. under test); nothing is process-wide
except the optional default instance from get_controller().
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel

from .capabilities.actions import (
    CommandDispatcher,
    LightAction,
    SetBrightnessAction,
    SetColorAction,
    SetPowerAction,
    ToggleAction,
)
from .capabilities.groups import GroupRegistry
from .capabilities.protocols import CommandResult, Device, PowerState
from .capabilities.registry import DeviceRegistry
from .capabilities.selector import Selector, parse_selector, resolve
from .color import ColorInput, parse_color
from .config import Settings, settings
from .discovery.fetcher import AttributeFetcher
from .discovery.service import DiscoveryService
from .exceptions import RemoteCommandFailure, UnknownOperation
from .schemas import (
    DeviceRequest,
    DiscoverRequest,
    EmptyRequest,
    ListLightsRequest,
    SetBrightnessRequest,
    SetColorRequest,
    SetPowerRequest,
    ToggleRequest,
)
from .transport.base import Transport
from .transport.lan import LanTransport
from .transport.messages import GetColor, GetPower, LightState

logger = logging.getLogger("lifx.controller")


def _parse_power(power: Union[str, bool]) -> bool:
    if isinstance(power, bool):
        return power
    value = power.strip().lower()
    if value not in ("on", "off"):
        raise ValueError(f"power must be 'on' or 'off', got {power!r}")
    return value == "on"


class LightController:
    """
    Server context for LIFX lights.

    Batch operations return one result per selected device, even when every
    device failed. Only malformed requests raise.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        config: Optional[Settings] = None,
    ):
        self.settings = config or settings
        self.transport = transport or LanTransport(self.settings.transport)
        self.registry = DeviceRegistry()
        self.groups = GroupRegistry("group")
        self.locations = GroupRegistry("location")
        self.discovery = DiscoveryService(self.transport, self.registry, self.settings.discovery)
        self.fetcher = AttributeFetcher(
            self.transport,
            self.registry,
            self.groups,
            self.locations,
            timeout=self.settings.dispatch.call_timeout,
        )
        self.dispatcher = CommandDispatcher(self.transport, self.registry, self.settings.dispatch)
        self._events: Optional[asyncio.Queue] = None
        self._started = False

        self._operations: dict[str, tuple[type[BaseModel], Callable[..., Awaitable[Any]]]] = {
            "list_lights": (ListLightsRequest, self.list_lights),
            "set_power": (SetPowerRequest, self.set_power),
            "set_brightness": (SetBrightnessRequest, self.set_brightness),
            "set_color": (SetColorRequest, self.set_color),
            "toggle": (ToggleRequest, self.toggle),
            "discover_devices": (DiscoverRequest, self.discover),
            "list_groups": (EmptyRequest, self.list_groups),
            "get_power": (DeviceRequest, self.get_power),
            "get_color": (DeviceRequest, self.get_color),
        }

    @property
    def operations(self) -> list[str]:
        return list(self._operations)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe the fetcher and start discovery."""
        if self._started:
            return
        self._events = self.discovery.subscribe()
        self.fetcher.attach(self._events)
        if self.settings.discovery.enabled:
            await self.discovery.start()
        self._started = True
        logger.info("Light controller started")

    async def shutdown(self) -> None:
        """Stop discovery, then cancel outstanding attribute fetches."""
        await self.discovery.stop()
        await self.fetcher.close()
        if self._events is not None:
            self.discovery.unsubscribe(self._events)
            self._events = None
        self._started = False
        logger.info("Light controller shut down")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _select(self, selector: Optional[str]) -> tuple[Selector, list[Device]]:
        parsed = parse_selector(selector)
        devices = await resolve(
            parsed,
            self.registry.list(),
            self.registry,
            self.groups,
            self.locations,
        )
        return parsed, devices

    async def _run(self, selector: Optional[str], action: LightAction) -> list[CommandResult]:
        _, devices = await self._select(selector)
        return await self.dispatcher.dispatch(devices, action)

    async def _device(self, serial: str) -> Device:
        return await self.registry.get(
            serial.strip().lower(),
            wait=self.settings.discovery.lookup_wait_seconds,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_lights(self, selector: str = "all") -> dict[str, Any]:
        snapshot = self.registry.list()
        _, devices = await self._select(selector)
        lights = []
        for device in devices:
            info = snapshot.get(device.serial)
            if info is None:
                continue
            lights.append({"serial": device.serial, **info.to_dict()})
        return {"lights": lights, "count": len(lights)}

    async def set_power(
        self,
        selector: str,
        power: Union[str, bool],
        duration_ms: int = 0,
    ) -> list[dict[str, Any]]:
        action = SetPowerAction(_parse_power(power), duration_ms)
        results = await self._run(selector, action)
        return [r.to_dict() for r in results]

    async def set_brightness(
        self,
        selector: str,
        brightness: float,
        duration_ms: int = 0,
    ) -> dict[str, Any]:
        action = SetBrightnessAction(brightness, duration_ms)
        results = await self._run(selector, action)
        return {
            "results": [r.to_dict() for r in results],
            "selector": selector,
            "brightness": brightness,
        }

    async def set_color(
        self,
        selector: str,
        color: ColorInput,
        duration_ms: int = 0,
    ) -> dict[str, Any]:
        # Report what the device is sent, kelvin clamped for writing
        hsbk = parse_color(color).for_write()
        results = await self._run(selector, SetColorAction(hsbk, duration_ms))
        return {
            "results": [r.to_dict() for r in results],
            "selector": selector,
            "color": hsbk.to_dict(),
        }

    async def toggle(self, selector: str, duration_ms: int = 0) -> dict[str, Any]:
        results = await self._run(selector, ToggleAction(duration_ms))
        return {"results": [r.to_dict() for r in results]}

    async def discover(self, wait: Optional[float] = None) -> dict[str, Any]:
        await self.discovery.discover_now(wait)
        return await self.list_lights()

    async def list_groups(self) -> dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups.list()],
            "locations": [loc.to_dict() for loc in self.locations.list()],
        }

    async def get_power(self, serial: str) -> dict[str, Any]:
        device = await self._device(serial)
        try:
            level = await self.transport.unicast(GetPower(), device)
        except Exception as e:
            raise RemoteCommandFailure(device.serial, f"Failed to get power state: {e}") from e

        power = PowerState.from_level(level)
        info = self.registry.info(device.serial)
        if info is not None:
            info.power = power
        return {"serial": device.serial, "power": power.value}

    async def get_color(self, serial: str) -> dict[str, Any]:
        device = await self._device(serial)
        try:
            state: LightState = await self.transport.unicast(GetColor(), device)
        except Exception as e:
            raise RemoteCommandFailure(device.serial, f"Failed to get color: {e}") from e

        info = self.registry.info(device.serial)
        if info is not None:
            info.color = state.color
            info.power = PowerState.from_level(state.power)
        return {
            "serial": device.serial,
            "color": state.color.to_dict(),
            "power": PowerState.from_level(state.power).value,
        }

    async def call(self, name: str, arguments: Optional[dict[str, Any]] = None) -> Any:
        """
        Validate arguments and run a named operation.

        Raises:
            UnknownOperation: for an unrecognized name
            pydantic.ValidationError: for structurally invalid arguments
            InvalidColorFormat: for a malformed color
        """
        entry = self._operations.get(name)
        if entry is None:
            raise UnknownOperation(name)

        model, handler = entry
        request = model.model_validate(arguments or {})
        logger.debug("Calling %s(%s)", name, request)
        return await handler(**request.model_dump())


# Default controller for the tool server
_controller: Optional[LightController] = None


def get_controller() -> LightController:
    """Get or create the default controller."""
    global _controller
    if _controller is None:
        _controller = LightController()
    return _controller


def reset_controller() -> None:
    """Drop the default controller (mainly for testing)."""
    global _controller
    _controller = None
