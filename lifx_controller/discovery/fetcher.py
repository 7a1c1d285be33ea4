"""
One-time attribute fetching for newly discovered devices.

Consumes DeviceEvents from the discovery service. For each new serial it
fetches label, group, location and color once; later re-discovery of the
same serial publishes nothing, so nothing is fetched again.
"""

import asyncio
import logging
from typing import Optional

from ..capabilities.groups import GroupRegistry
from ..capabilities.protocols import Device, DeviceEvent, PowerState
from ..capabilities.registry import DeviceRegistry
from ..transport.base import Transport
from ..transport.messages import GetColor, GetGroup, GetLabel, GetLocation, GroupState, LightState

logger = logging.getLogger("lifx.discovery.fetcher")


class AttributeFetcher:
    """
    Subscriber that fills DeviceInfo records.

    Fetches are best effort: a failure is logged and the field stays empty.
    Outstanding fetches are cancelled only by close().
    """

    def __init__(
        self,
        transport: Transport,
        registry: DeviceRegistry,
        groups: GroupRegistry,
        locations: GroupRegistry,
        timeout: Optional[float] = None,
    ):
        self._transport = transport
        self._registry = registry
        self._groups = groups
        self._locations = locations
        self._timeout = timeout
        self._consumer: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def attach(self, events: asyncio.Queue) -> None:
        """Start consuming events from a discovery subscription."""
        if self._consumer is not None:
            return
        self._consumer = asyncio.create_task(self._consume(events))

    async def _consume(self, events: asyncio.Queue) -> None:
        while True:
            event: DeviceEvent = await events.get()
            try:
                self.handle_event(event)
            except Exception as e:
                logger.error("Failed to handle %s event for %s: %s", event.kind, event.serial, e)

    def handle_event(self, event: DeviceEvent) -> None:
        if event.kind == "added" and event.device is not None:
            task = asyncio.create_task(self.fetch_all(event.device))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif event.kind == "evicted":
            self._groups.forget(event.serial)
            self._locations.forget(event.serial)

    async def fetch_all(self, device: Device) -> None:
        """Fetch every attribute concurrently; each one may fail on its own."""
        await asyncio.gather(
            self._fetch(device, GetLabel(), self._apply_label),
            self._fetch(device, GetGroup(), self._apply_group),
            self._fetch(device, GetLocation(), self._apply_location),
            self._fetch(device, GetColor(), self._apply_color),
        )
        info = self._registry.info(device.serial)
        if info is not None:
            logger.info("Device %s: %s", device.serial, info.to_dict())

    async def _fetch(self, device: Device, message, apply) -> None:
        try:
            if self._timeout:
                value = await asyncio.wait_for(
                    self._transport.unicast(message, device), timeout=self._timeout
                )
            else:
                value = await self._transport.unicast(message, device)
        except asyncio.TimeoutError:
            logger.warning("%s for %s timed out", message.name, device.serial)
            return
        except Exception as e:
            logger.warning("%s for %s failed: %s", message.name, device.serial, e)
            return
        apply(device.serial, value)

    def _apply_label(self, serial: str, label: str) -> None:
        info = self._registry.info(serial)
        if info is not None:
            info.label = label

    def _apply_group(self, serial: str, state: GroupState) -> None:
        info = self._registry.info(serial)
        if info is None:
            return
        self._groups.register(serial, state)
        info.group = state.label

    def _apply_location(self, serial: str, state: GroupState) -> None:
        info = self._registry.info(serial)
        if info is None:
            return
        self._locations.register(serial, state)
        info.location = state.label

    def _apply_color(self, serial: str, state: LightState) -> None:
        info = self._registry.info(serial)
        if info is None:
            return
        info.color = state.color
        info.power = PowerState.from_level(state.power)
        if info.label is None and state.label:
            info.label = state.label

    async def close(self) -> None:
        """Stop consuming and cancel outstanding fetches."""
        tasks: list[asyncio.Task] = list(self._tasks)
        if self._consumer is not None:
            tasks.append(self._consumer)
            self._consumer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
