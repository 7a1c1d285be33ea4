"""
Shared fixtures: an in-memory transport and small-timeout settings.

Nothing here touches the network.
"""

import asyncio
from typing import Any, Optional

import pytest

from lifx_controller.capabilities.registry import DeviceRegistry
from lifx_controller.color import HSBK
from lifx_controller.config import DiscoveryConfig, DispatchConfig, Settings
from lifx_controller.exceptions import TransportError, TransportTimeout
from lifx_controller.transport.messages import GetService, LightState


SERIAL_A = "d073d5000001"
SERIAL_B = "d073d5000002"
SERIAL_C = "d073d5000003"


class FakeTransport:
    """
    Transport double.

    Replies are keyed by (serial, message class); a key with serial None
    answers for every device. A reply that is an exception is raised.
    """

    def __init__(self) -> None:
        self.running = False
        self.on_service = None
        self.start_calls = 0
        self.close_calls = 0
        self.broadcasts: list[Any] = []
        self.requests: list[tuple[str, Any]] = []
        self.writes: list[tuple[str, Any]] = []
        self.replies: dict[tuple[Optional[str], type], Any] = {}
        self.write_failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.responders: list[str] = []
        self.active = 0
        self.max_active = 0

    @property
    def is_running(self) -> bool:
        return self.running

    async def start(self, on_service) -> None:
        self.on_service = on_service
        self.running = True
        self.start_calls += 1

    async def close(self) -> None:
        self.running = False
        self.close_calls += 1

    def reply(self, message_cls: type, value: Any, serial: Optional[str] = None) -> None:
        self.replies[(serial, message_cls)] = value

    def announce(self, serial: str, address: str = "192.168.1.10", port: int = 56700) -> None:
        self.on_service(serial, address, port)

    def broadcast(self, message) -> None:
        if not self.running:
            raise TransportError("Transport is not running")
        self.broadcasts.append(message)
        if isinstance(message, GetService) and self.on_service is not None:
            for serial in self.responders:
                self.announce(serial)

    async def _enter(self, serial: str) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            delay = self.delays.get(serial)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
        finally:
            self.active -= 1

    async def unicast(self, message, device) -> Any:
        self.requests.append((device.serial, message))
        await self._enter(device.serial)
        key = (device.serial, type(message))
        if key not in self.replies:
            key = (None, type(message))
        if key not in self.replies:
            raise TransportTimeout(f"No reply to {message.name} from {device.serial}")
        value = self.replies[key]
        if isinstance(value, Exception):
            raise value
        return value

    async def unicast_ack_only(self, message, device) -> None:
        await self._enter(device.serial)
        failure = self.write_failures.get(device.serial)
        if failure is not None:
            raise failure
        self.writes.append((device.serial, message))

    def writes_for(self, serial: str) -> list[Any]:
        return [m for s, m in self.writes if s == serial]


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the loop until predicate() holds."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


def light_state(
    hue: int = 21845,
    brightness: int = 65535,
    power: int = 65535,
    label: str = "Desk",
) -> LightState:
    return LightState(color=HSBK(hue, 65535, brightness, 3500), power=power, label=label)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def registry() -> DeviceRegistry:
    return DeviceRegistry()


@pytest.fixture
def populated_registry(registry) -> DeviceRegistry:
    for index, serial in enumerate((SERIAL_A, SERIAL_B, SERIAL_C)):
        registry.register(serial, f"192.168.1.{10 + index}", 56700)
    registry.info(SERIAL_A).label = "Desk"
    registry.info(SERIAL_B).label = "Kitchen"
    registry.info(SERIAL_C).label = "Porch"
    return registry


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        discovery=DiscoveryConfig(
            enabled=True,
            interval_seconds=60.0,
            followup_delay_seconds=None,
            stale_after_cycles=0,
            discover_wait_seconds=0.0,
            lookup_wait_seconds=0.01,
        ),
        dispatch=DispatchConfig(max_concurrency=4, call_timeout=0.5),
    )
