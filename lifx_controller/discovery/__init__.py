"""
Device discovery for the LIFX controller.

Provides the periodic broadcast loop and the subscriber that fetches
attributes for newly discovered devices.
"""

from .fetcher import AttributeFetcher
from .service import DiscoveryService

__all__ = [
    "AttributeFetcher",
    "DiscoveryService",
]
