"""
Entry point: python -m lifx_controller [--sse]
"""

import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from .config import settings  # noqa: E402
from .mcp.server import mcp  # noqa: E402


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if "--sse" in sys.argv:
        mcp.settings.host = settings.mcp.host
        mcp.settings.port = settings.mcp.port
        mcp.run(transport="sse")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
