"""
Registry of discovered devices and their last known attributes.

One registry instance is owned by the controller and handed to every
component; there is no process-wide registry.
"""

import asyncio
import logging
import time
from typing import List, Optional

from ..exceptions import DeviceNotFound
from .protocols import Device, DeviceInfo

logger = logging.getLogger("lifx.capabilities.registry")


class DeviceRegistry:
    """
    Authoritative store of devices keyed by serial.

    All mutation happens on the event loop thread, in reaction to an inbound
    packet or a finished remote call, so no lock is needed.
    """

    def __init__(self) -> None:
        self._devices: dict[str, Device] = {}
        self._info: dict[str, DeviceInfo] = {}
        self._waiters: dict[str, list[asyncio.Future]] = {}

    def register(
        self,
        serial: str,
        address: str,
        port: int,
    ) -> tuple[Device, bool]:
        """
        Insert or refresh a device.

        Returns:
            (device, created) where created is True only for a new serial
        """
        device = self._devices.get(serial)
        now = time.monotonic()

        if device is not None:
            if device.address != address or device.port != port:
                logger.info(
                    "Device %s moved %s:%d -> %s:%d",
                    serial, device.address, device.port, address, port,
                )
                device.address = address
                device.port = port
            device.last_seen = now
            return device, False

        device = Device(serial=serial, address=address, port=port, last_seen=now)
        self._devices[serial] = device
        self._info[serial] = DeviceInfo()
        logger.info("Registered device %s at %s:%d", serial, address, port)

        for waiter in self._waiters.pop(serial, []):
            if not waiter.done():
                waiter.set_result(device)

        return device, True

    async def get(self, serial: str, wait: float = 0.0) -> Device:
        """
        Look up the live device for a serial.

        Args:
            serial: Device serial
            wait: Seconds to wait for a registration that has not landed yet

        Raises:
            DeviceNotFound: if the serial is unknown after the bounded wait
        """
        device = self._devices.get(serial)
        if device is not None:
            return device
        if wait <= 0:
            raise DeviceNotFound(serial)

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(serial, []).append(waiter)
        try:
            return await asyncio.wait_for(waiter, timeout=wait)
        except asyncio.TimeoutError:
            raise DeviceNotFound(serial) from None
        finally:
            pending = self._waiters.get(serial)
            if pending and waiter in pending:
                pending.remove(waiter)
                if not pending:
                    del self._waiters[serial]

    def info(self, serial: str) -> Optional[DeviceInfo]:
        """Mutable attribute record, for fetchers and the dispatcher."""
        return self._info.get(serial)

    def list(self) -> dict[str, DeviceInfo]:
        """Point-in-time copy of every (serial, DeviceInfo) pair."""
        return {serial: info.copy() for serial, info in self._info.items()}

    def devices(self) -> List[Device]:
        return list(self._devices.values())

    def evict_stale(self, max_age: float) -> List[str]:
        """Drop devices not seen for more than max_age seconds."""
        cutoff = time.monotonic() - max_age
        stale = [s for s, d in self._devices.items() if d.last_seen < cutoff]
        for serial in stale:
            del self._devices[serial]
            self._info.pop(serial, None)
            logger.info("Evicted stale device %s", serial)
        return stale

    def __contains__(self, serial: object) -> bool:
        return serial in self._devices

    def __len__(self) -> int:
        return len(self._devices)
