"""
Base protocol for the device transport.
"""

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from .messages import Message

if TYPE_CHECKING:
    from ..capabilities.protocols import Device

# (serial, address, port)
ServiceCallback = Callable[[str, str, int], None]


@runtime_checkable
class Transport(Protocol):
    """
    Protocol for the network side of device communication.

    A transport owns the wire protocol: it sends requests, waits for their
    replies or acknowledgements, and reports discovery replies.
    """

    @property
    def is_running(self) -> bool:
        ...

    async def start(self, on_service: ServiceCallback) -> None:
        """Bind the receive path; on_service is called for every discovery reply."""
        ...

    async def close(self) -> None:
        """Stop discovery and release device connections."""
        ...

    def broadcast(self, message: Message) -> None:
        """Send a tagged message to every device on the network."""
        ...

    async def unicast(self, message: Message, device: "Device") -> Any:
        """
        Send a message to one device and return its decoded reply.

        Raises:
            TransportError: on send failure, timeout or undecodable reply
        """
        ...

    async def unicast_ack_only(self, message: Message, device: "Device") -> None:
        """Send a message to one device and wait only for its acknowledgement."""
        ...
