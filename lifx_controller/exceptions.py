"""
Exception hierarchy for the LIFX controller.

Batch operations never raise these for a single device; the dispatcher turns
per-device failures into CommandResult entries instead.
"""


class LifxControllerError(Exception):
    """Base class for all controller errors."""


class InvalidColorFormat(LifxControllerError, ValueError):
    """Color input is neither a known name, a #RRGGBB string nor an HSBK mapping."""


class DeviceNotFound(LifxControllerError, LookupError):
    """A single explicitly addressed serial is not in the registry."""

    def __init__(self, serial: str):
        super().__init__(f"Device with serial number {serial} not found")
        self.serial = serial


class RemoteCommandFailure(LifxControllerError):
    """A remote call to one device failed."""

    def __init__(self, serial: str, message: str):
        super().__init__(f"{serial}: {message}")
        self.serial = serial


class UnknownOperation(LifxControllerError):
    """Request names an operation the controller does not provide."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class TransportError(LifxControllerError):
    """The transport could not deliver a message or decode a reply."""


class TransportTimeout(TransportError):
    """No reply arrived before the transport gave up."""
