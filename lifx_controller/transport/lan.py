"""
LAN transport backed by lifx-async.

The library owns the wire protocol: packet encoding, sequence matching,
retries and acknowledgements. This adapter maps the controller's Transport
interface onto it. A broadcast runs one library discovery pass in the
background and reports each responding light through the service callback.
Unicast requests run against a per-serial device handle.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from lifx import Light, discover
from lifx.exceptions import LifxError, LifxTimeoutError

from ..config import TransportConfig, settings
from ..exceptions import TransportError, TransportTimeout
from .base import ServiceCallback
from .messages import GetService, Message

if TYPE_CHECKING:
    from ..capabilities.protocols import Device

logger = logging.getLogger("lifx.transport.lan")


class LanTransport:
    """
    Transport over lifx-async.

    Every request has a deadline of response_timeout seconds on top of the
    library's own retry schedule.
    """

    def __init__(self, config: Optional[TransportConfig] = None):
        self._config = config or settings.transport
        self._on_service: Optional[ServiceCallback] = None
        self._running = False
        self._scan: Optional[asyncio.Task] = None
        self._handles: dict[str, Light] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def scanning(self) -> bool:
        return self._scan is not None and not self._scan.done()

    async def start(self, on_service: ServiceCallback) -> None:
        self._on_service = on_service
        if self._running:
            return
        self._running = True
        logger.info("LAN transport started (broadcast=%s)", self._config.broadcast_address)

    async def close(self) -> None:
        self._running = False
        if self._scan is not None:
            self._scan.cancel()
            try:
                await self._scan
            except asyncio.CancelledError:
                pass
            self._scan = None

        for serial, light in list(self._handles.items()):
            try:
                await light.close()
            except (LifxError, OSError) as e:
                logger.debug("Closing handle for %s failed: %s", serial, e)
        self._handles.clear()
        logger.info("LAN transport closed")

    def broadcast(self, message: Message) -> None:
        if not self._running:
            raise TransportError("Transport is not running")
        if not isinstance(message, GetService):
            raise TransportError(f"{message.name} cannot be broadcast")
        if self.scanning:
            logger.debug("Discovery pass already in progress")
            return
        self._scan = asyncio.create_task(self._discover())

    async def _discover(self) -> None:
        found = 0
        try:
            async for light in discover(
                timeout=self._config.discovery_timeout,
                broadcast_address=self._config.broadcast_address,
            ):
                if not isinstance(light, Light):
                    logger.debug("Skipping non-light device %s", light.serial)
                    continue
                found += 1
                self._handle_service(light)
        except (LifxError, OSError) as e:
            logger.error("Discovery pass failed: %s", e)
            return
        logger.debug("Discovery pass finished, %d replies", found)

    def _handle_service(self, light: Light) -> None:
        serial = light.serial.lower()
        self._handles[serial] = light
        if self._on_service is not None:
            self._on_service(serial, light.ip, light.port)

    def _handle(self, device: "Device") -> Light:
        light = self._handles.get(device.serial)
        if light is None or light.ip != device.address or light.port != device.port:
            light = Light(serial=device.serial, ip=device.address, port=device.port)
            self._handles[device.serial] = light
        return light

    async def unicast(self, message: Message, device: "Device") -> Any:
        if not message.has_reply:
            raise TransportError(f"{message.name} has no reply; use unicast_ack_only")
        return await self._request(message, device)

    async def unicast_ack_only(self, message: Message, device: "Device") -> None:
        await self._request(message, device)

    async def _request(self, message: Message, device: "Device") -> Any:
        light = self._handle(device)
        timeout = self._config.response_timeout
        try:
            return await asyncio.wait_for(message.send(light), timeout=timeout)
        except (asyncio.TimeoutError, LifxTimeoutError) as e:
            raise TransportTimeout(
                f"No reply to {message.name} from {device.serial} after {timeout:.1f}s"
            ) from e
        except (LifxError, OSError) as e:
            raise TransportError(f"{message.name} to {device.serial} failed: {e}") from e
