"""
Tests for the lifx-async LAN adapter and the typed requests.

The library's discover() and Light are patched, so nothing touches the network.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from lifx.exceptions import LifxError

from lifx_controller.capabilities.protocols import Device
from lifx_controller.color import HSBK
from lifx_controller.config import TransportConfig
from lifx_controller.exceptions import TransportError, TransportTimeout
from lifx_controller.transport.lan import LanTransport
from lifx_controller.transport.messages import (
    GetColor,
    GetGroup,
    GetLabel,
    GetLocation,
    GetPower,
    GetService,
    GroupState,
    LightState,
    SetColor,
    SetLightPower,
)

from .conftest import SERIAL_A, SERIAL_B


class FakeLight:
    """Stand-in for lifx.Light with awaitable device calls."""

    def __init__(self, serial: str, ip: str, port: int = 56700):
        self.serial = serial
        self.ip = ip
        self.port = port
        self.get_label = AsyncMock(return_value="Desk")
        self.get_power = AsyncMock(return_value=65535)
        self.get_group = AsyncMock(
            return_value=SimpleNamespace(uuid="aa" * 16, label="Office", updated_at=7)
        )
        self.get_location = AsyncMock(
            return_value=SimpleNamespace(uuid="bb" * 16, label="Home", updated_at=3)
        )
        self.get_color = AsyncMock(
            return_value=(SimpleNamespace(hue=120.0, saturation=1.0, brightness=0.5, kelvin=0), 65535, "Desk")
        )
        self.set_color = AsyncMock()
        self.set_power = AsyncMock()
        self.close = AsyncMock()


def _discover_yielding(*devices, calls=None):
    async def _discover(timeout, broadcast_address):
        if calls is not None:
            calls.append((timeout, broadcast_address))
        for device in devices:
            await asyncio.sleep(0)
            yield device
    return _discover


def _transport(**overrides) -> LanTransport:
    config = TransportConfig(**{"response_timeout": 0.5, "discovery_timeout": 0.1, **overrides})
    return LanTransport(config)


def _device(serial: str = SERIAL_A, address: str = "192.168.1.10") -> Device:
    return Device(serial=serial, address=address, port=56700)


class TestMessages:
    async def test_get_color_converts_to_device_units(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")

        state = await GetColor().send(light)

        assert state == LightState(color=HSBK(21845, 65535, 32768, 1500), power=65535, label="Desk")

    async def test_get_power_accepts_bool(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")
        light.get_power.return_value = False

        assert await GetPower().send(light) == 0

    async def test_get_group_and_location(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")

        assert await GetGroup().send(light) == GroupState(id="aa" * 16, label="Office", updated_at=7)
        assert await GetLocation().send(light) == GroupState(id="bb" * 16, label="Home", updated_at=3)

    async def test_collection_id_as_bytes(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")
        light.get_location.return_value = SimpleNamespace(
            location=bytes(range(16)), label="Home", updated_at=0
        )

        state = await GetLocation().send(light)

        assert state.id == bytes(range(16)).hex()

    async def test_set_color_sends_library_units(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")

        await SetColor(HSBK(21845, 65535, 65535, 1500), duration_ms=250).send(light)

        color = light.set_color.await_args.args[0]
        assert color.hue == pytest.approx(120.0)
        assert color.saturation == pytest.approx(1.0)
        assert color.kelvin == 2500
        assert light.set_color.await_args.kwargs["duration"] == pytest.approx(0.25)

    async def test_set_light_power_duration_in_seconds(self):
        light = FakeLight(SERIAL_A, "192.168.1.10")

        await SetLightPower(on=False, duration_ms=500).send(light)

        light.set_power.assert_awaited_once_with(False, duration=0.5)

    async def test_discovery_request_cannot_be_unicast(self):
        with pytest.raises(TransportError):
            await GetService().send(FakeLight(SERIAL_A, "192.168.1.10"))


class TestLanDiscovery:
    async def test_broadcast_requires_start(self):
        with pytest.raises(TransportError):
            _transport().broadcast(GetService())

    async def test_broadcast_reports_lights_only(self):
        transport = _transport(broadcast_address="192.168.1.255")
        seen = []
        await transport.start(lambda *args: seen.append(args))
        calls = []
        lights = [
            FakeLight("D073D5000001", "192.168.1.10"),
            SimpleNamespace(serial="d073d5aaaaaa", ip="192.168.1.30", port=56700),
            FakeLight(SERIAL_B, "192.168.1.11", 56701),
        ]

        with patch("lifx_controller.transport.lan.Light", FakeLight), patch(
            "lifx_controller.transport.lan.discover", _discover_yielding(*lights, calls=calls)
        ):
            transport.broadcast(GetService())
            await transport._scan

        assert calls == [(0.1, "192.168.1.255")]
        assert seen == [
            (SERIAL_A, "192.168.1.10", 56700),
            (SERIAL_B, "192.168.1.11", 56701),
        ]

    async def test_overlapping_broadcast_is_skipped(self):
        transport = _transport()
        await transport.start(lambda *args: None)
        calls = []

        with patch("lifx_controller.transport.lan.Light", FakeLight), patch(
            "lifx_controller.transport.lan.discover", _discover_yielding(calls=calls)
        ):
            transport.broadcast(GetService())
            transport.broadcast(GetService())
            await transport._scan

        assert len(calls) == 1

    async def test_discovery_failure_is_logged(self):
        transport = _transport()
        await transport.start(lambda *args: None)

        async def _failing(timeout, broadcast_address):
            raise OSError("network unreachable")
            yield  # pragma: no cover

        with patch("lifx_controller.transport.lan.discover", _failing):
            transport.broadcast(GetService())
            await transport._scan

        assert transport.is_running


class TestLanRequests:
    async def test_unicast_uses_discovered_handle(self):
        transport = _transport()
        await transport.start(lambda *args: None)
        light = FakeLight(SERIAL_A, "192.168.1.10")

        with patch("lifx_controller.transport.lan.Light", FakeLight), patch(
            "lifx_controller.transport.lan.discover", _discover_yielding(light)
        ):
            transport.broadcast(GetService())
            await transport._scan
            label = await transport.unicast(GetLabel(), _device())

        assert label == "Desk"
        light.get_label.assert_awaited_once()

    async def test_unknown_device_gets_a_new_handle(self):
        transport = _transport()

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            level = await transport.unicast(GetPower(), _device())

        assert level == 65535
        handle = transport._handles[SERIAL_A]
        assert (handle.serial, handle.ip, handle.port) == (SERIAL_A, "192.168.1.10", 56700)

    async def test_moved_device_gets_a_fresh_handle(self):
        transport = _transport()

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            await transport.unicast(GetPower(), _device())
            first = transport._handles[SERIAL_A]
            await transport.unicast(GetPower(), _device(address="192.168.1.99"))

        assert transport._handles[SERIAL_A] is not first
        assert transport._handles[SERIAL_A].ip == "192.168.1.99"

    async def test_ack_only_write(self):
        transport = _transport()

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            result = await transport.unicast_ack_only(SetLightPower(on=True), _device())

        assert result is None
        transport._handles[SERIAL_A].set_power.assert_awaited_once_with(True, duration=0.0)

    async def test_write_needs_ack_only(self):
        with pytest.raises(TransportError):
            await _transport().unicast(SetColor(), _device())

    async def test_slow_reply_times_out(self):
        transport = _transport(response_timeout=0.02)

        async def _slow():
            await asyncio.sleep(1.0)

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            transport._handle(_device()).get_label.side_effect = _slow
            with pytest.raises(TransportTimeout):
                await transport.unicast(GetLabel(), _device())

    async def test_library_error_becomes_transport_error(self):
        transport = _transport()

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            transport._handle(_device()).get_label.side_effect = LifxError("unsupported")
            with pytest.raises(TransportError, match="unsupported"):
                await transport.unicast(GetLabel(), _device())

    async def test_close_releases_handles(self):
        transport = _transport()
        await transport.start(lambda *args: None)

        with patch("lifx_controller.transport.lan.Light", FakeLight):
            handle = transport._handle(_device())
        await transport.close()

        handle.close.assert_awaited_once()
        assert transport._handles == {}
        assert transport.is_running is False
