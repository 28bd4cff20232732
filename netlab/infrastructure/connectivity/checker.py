"""
Internet Connectivity Probe.

Issues a single GET against a captive-portal style endpoint that answers
``204 No Content`` when the path to the internet is clean. Any other
status (portal redirect, proxy page) reports as not connected; transport
failures raise ConnectivityError.
"""

from __future__ import annotations

import logging
import time

import aiohttp

from netlab.core.errors import ConnectivityError
from netlab.domain.models import ConnectivityResponse

logger = logging.getLogger(__name__)

DEFAULT_PROBE_URL = "https://www.google.com/generate_204"


class ConnectivityChecker:
    """
    Probe internet reachability over HTTP.

    Usage:
        checker = ConnectivityChecker()
        result = await checker.check(timeout_ms=3000)
        if result.is_connected:
            ...
    """

    def __init__(self, url: str = DEFAULT_PROBE_URL, timeout_ms: int = 5000) -> None:
        self.url = url
        self.timeout_ms = timeout_ms

    async def check(self, timeout_ms: int = 0) -> ConnectivityResponse:
        """Probe once. ``timeout_ms`` of 0 uses the configured default."""
        timeout_s = (timeout_ms or self.timeout_ms) / 1000.0
        started = time.monotonic()

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=timeout_s),
            ) as session:
                async with session.get(self.url, allow_redirects=False) as resp:
                    status = resp.status
        except TimeoutError as e:
            logger.warning("Connectivity probe timed out after %.1fs", timeout_s)
            raise ConnectivityError(f"probe to {self.url} timed out") from e
        except aiohttp.ClientError as e:
            logger.warning("Connectivity probe failed: %s", e)
            raise ConnectivityError(f"probe to {self.url} failed: {e}") from e

        elapsed_ms = (time.monotonic() - started) * 1000.0
        connected = status == 204
        logger.debug("Connectivity probe %s -> %d (%.0fms)", self.url, status, elapsed_ms)
        return ConnectivityResponse(
            is_connected=connected,
            status_code=status,
            elapsed_ms=round(elapsed_ms, 1),
        )
