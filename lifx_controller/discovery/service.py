"""
Discovery Service - periodic GetService broadcasts.

Feeds every StateService reply into the device registry and publishes a
DeviceEvent for serials seen for the first time, so attribute fetching can
happen elsewhere.
"""

import asyncio
import logging
from typing import Optional

from ..capabilities.protocols import DeviceEvent
from ..capabilities.registry import DeviceRegistry
from ..config import DiscoveryConfig, settings
from ..exceptions import TransportError
from ..transport.base import Transport
from ..transport.messages import GetService

logger = logging.getLogger("lifx.discovery.service")


class DiscoveryService:
    """
    Discovery loop with two states, idle and running.

    Reliability comes from re-broadcasting on a fixed cadence; there is no
    retry or backoff here.
    """

    def __init__(
        self,
        transport: Transport,
        registry: DeviceRegistry,
        config: Optional[DiscoveryConfig] = None,
    ):
        self._transport = transport
        self._registry = registry
        self._config = config or settings.discovery
        self._scan_task: Optional[asyncio.Task] = None
        self._running = False
        self._subscribers: list[asyncio.Queue] = []

    @property
    def state(self) -> str:
        return "running" if self._running else "idle"

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe(self) -> asyncio.Queue:
        """Return a queue that receives every DeviceEvent from now on."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, event: DeviceEvent) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    def handle_service(self, serial: str, address: str, port: int) -> None:
        """Transport callback for each StateService reply."""
        device, created = self._registry.register(serial, address, port)
        if created:
            logger.info("Device discovered: %s at %s:%d", serial, address, port)
            self._publish(DeviceEvent(kind="added", serial=serial, device=device))

    def broadcast(self) -> None:
        try:
            self._transport.broadcast(GetService())
        except (TransportError, OSError) as e:
            logger.error("Discovery broadcast failed: %s", e)

    def evict_stale(self) -> list[str]:
        cycles = self._config.stale_after_cycles
        if cycles <= 0:
            return []
        evicted = self._registry.evict_stale(cycles * self._config.interval_seconds)
        for serial in evicted:
            self._publish(DeviceEvent(kind="evicted", serial=serial))
        return evicted

    async def start(self) -> None:
        """Bind the receive path, broadcast now, then on every interval."""
        if self._running:
            return

        await self._transport.start(self.handle_service)
        self._running = True
        self.broadcast()

        interval = self._config.interval_seconds
        followup = self._config.followup_delay_seconds

        async def _periodic_scan():
            if followup is not None and 0 < followup < interval:
                await asyncio.sleep(followup)
                self.broadcast()
                await asyncio.sleep(interval - followup)
            else:
                await asyncio.sleep(interval)

            while self._running:
                try:
                    self.broadcast()
                    self.evict_stale()
                    await asyncio.sleep(interval)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error("Periodic discovery failed: %s", e)

        self._scan_task = asyncio.create_task(_periodic_scan())
        logger.info("Started discovery (interval=%.1fs)", interval)

    async def stop(self) -> None:
        """
        Cancel the periodic broadcast and release the endpoint.

        Attribute fetches already in flight are left alone.
        """
        self._running = False
        if self._scan_task:
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            self._scan_task = None
        await self._transport.close()
        logger.info("Stopped discovery")

    async def discover_now(self, wait: Optional[float] = None) -> int:
        """Broadcast once and give devices `wait` seconds to answer."""
        if not self._transport.is_running:
            await self._transport.start(self.handle_service)
        self.broadcast()
        await asyncio.sleep(self._config.discover_wait_seconds if wait is None else wait)
        return len(self._registry)
