"""
LIFX Controller MCP Server.

Exposes LAN light control to any MCP-compatible client. Devices are found by
UDP broadcast when the server starts and kept current in the background.

Tools:
    list_lights       - list known lights matching a selector
    set_power         - turn lights on or off
    set_brightness    - change brightness, keeping the current color
    set_color         - set color by name, #RRGGBB, or device-unit HSBK
    toggle            - invert the power state of each light
    discover_devices  - broadcast now and wait for replies
    list_groups       - list groups and locations with their members
    get_power         - read the power state of one light
    get_color         - read the color of one light

Selectors:
    all, <serial>, serial:<id>, label:<name>, group:<name>, location:<name>

Run:
    python -m lifx_controller          # stdio (Claude Desktop / Cursor)
    python -m lifx_controller --sse    # SSE HTTP transport (port 8060)
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from mcp.server.fastmcp import FastMCP

from ..controller import get_controller

logger = logging.getLogger("lifx.mcp.server")


@asynccontextmanager
async def _lifespan(server):
    """Start discovery on startup, stop it and pending fetches on shutdown."""
    controller = get_controller()
    await controller.start()
    logger.info("LIFX MCP: controller started")
    try:
        yield
    finally:
        await controller.shutdown()


mcp = FastMCP(
    "lifx-controller",
    instructions=(
        "Controls LIFX lights on the local network. "
        "Call list_lights first to see which lights are known; if none are, "
        "call discover_devices. "
        "Commands take a selector such as 'all', a serial, 'label:Kitchen' or "
        "'group:Upstairs' and report success or failure per light."
    ),
    lifespan=_lifespan,
)


def _controller():
    return get_controller()


async def _call(name: str, arguments: dict[str, Any]) -> str:
    try:
        result = await _controller().call(name, arguments)
        return json.dumps(result, indent=2)
    except Exception as exc:
        logger.exception("%s error", name)
        return json.dumps({"error": str(exc)})


@mcp.tool()
async def list_lights(selector: str = "all") -> str:
    """List known lights with label, group, location, power and color.

    Args:
        selector: 'all' (default), a serial, or 'label:', 'group:',
                  'location:' followed by a name.
    """
    return await _call("list_lights", {"selector": selector})


@mcp.tool()
async def set_power(selector: str, power: str, duration_ms: int = 0) -> str:
    """Turn lights on or off.

    Args:
        selector:    Which lights to target (e.g. 'all', 'label:Desk').
        power:       'on' or 'off'.
        duration_ms: Fade duration in milliseconds.
    """
    return await _call(
        "set_power",
        {"selector": selector, "power": power, "duration_ms": duration_ms},
    )


@mcp.tool()
async def set_brightness(selector: str, brightness: float, duration_ms: int = 0) -> str:
    """Set brightness from 0.0 to 1.0 without changing hue, saturation or kelvin."""
    return await _call(
        "set_brightness",
        {"selector": selector, "brightness": brightness, "duration_ms": duration_ms},
    )


@mcp.tool()
async def set_color(
    selector: str,
    color: Union[str, dict[str, Any]],
    duration_ms: int = 0,
) -> str:
    """Set light color.

    Args:
        selector:    Which lights to target.
        color:       A name (red, orange, yellow, green, cyan, blue, purple,
                     magenta, pink, white, warm_white, cool_white), a hex
                     string '#RRGGBB', or an object with any of hue,
                     saturation, brightness (0-65535) and kelvin (1500-9000).
        duration_ms: Transition duration in milliseconds.
    """
    return await _call(
        "set_color",
        {"selector": selector, "color": color, "duration_ms": duration_ms},
    )


@mcp.tool()
async def toggle(selector: str, duration_ms: int = 0) -> str:
    """Toggle each selected light: on lights turn off, off lights turn on."""
    return await _call("toggle", {"selector": selector, "duration_ms": duration_ms})


@mcp.tool()
async def discover_devices(wait: Optional[float] = None) -> str:
    """Broadcast for lights now, wait for replies, then list what is known.

    Args:
        wait: Seconds to wait for replies (default from configuration, max 30).
    """
    return await _call("discover_devices", {"wait": wait})


@mcp.tool()
async def list_groups() -> str:
    """List groups and locations with the serials of their member lights."""
    return await _call("list_groups", {})


@mcp.tool()
async def get_power(serial: str) -> str:
    """Read the current power state of a single light by serial."""
    return await _call("get_power", {"serial": serial})


@mcp.tool()
async def get_color(serial: str) -> str:
    """Read the current color (device units) and power of a single light."""
    return await _call("get_color", {"serial": serial})
