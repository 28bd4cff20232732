"""Same-SSID profile replacement shared by the client and hotspot workflows."""

from __future__ import annotations

import logging

from netlab.core.errors import BusCallError
from netlab.infrastructure.nm.bus import NetworkManagerBus
from netlab.infrastructure.nm.profiles import profile_ssid

logger = logging.getLogger(__name__)


async def remove_profiles_for_ssid(bus: NetworkManagerBus, ssid: str) -> list[str]:
    """
    Delete stored profiles whose wireless SSID equals ``ssid``.

    Profiles whose settings cannot be read are skipped. A failed delete
    propagates.
    """
    removed: list[str] = []
    for connection in await bus.list_connections():
        try:
            settings = await bus.get_connection_settings(connection)
        except BusCallError as e:
            logger.warning("Failed to get settings for %s: %s", connection, e)
            continue

        if profile_ssid(settings) != ssid:
            continue

        logger.info("Deleting existing connection: %s", connection)
        await bus.delete_connection(connection)
        removed.append(connection)
    return removed
