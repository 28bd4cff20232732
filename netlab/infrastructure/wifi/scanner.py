"""
Async WiFi Scanner - NetworkManager scan orchestration
======================================================

Enumerates wireless devices on the bus, requests an active scan and
classifies every access point the device reports.

Features:
- Optional interface filter
- Per-device and per-AP graceful degradation (logged, never raised)
- Deadline: returns what was collected when it elapses

Usage:
    scanner = WiFiScanner(bus)
    aps = await scanner.scan(interface="wlan0", timeout=10.0)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from netlab.core.errors import BusCallError
from netlab.domain.models import AccessPoint
from netlab.infrastructure.nm.bus import DEVICE_TYPE_WIFI, NetworkManagerBus, RawAccessPoint

from .classifier import classify_security, frequency_to_channel, rate_signal

logger = logging.getLogger(__name__)


@dataclass
class ScanConfig:
    """WiFi scan configuration."""

    interface: str | None = None
    scan_timeout: float = 10.0


def classify_access_point(raw: RawAccessPoint) -> AccessPoint:
    """Build a classified AccessPoint from raw NetworkManager properties."""
    # NetworkManager reports strength as an unsigned byte; dBm is its negation
    rssi = -abs(raw.strength)
    return AccessPoint(
        ssid=raw.ssid.decode("utf-8", errors="replace"),
        bssid=raw.hw_address,
        rssi=rssi,
        frequency=raw.frequency,
        channel=frequency_to_channel(raw.frequency),
        signal_rating=rate_signal(rssi),
        security_type=classify_security(raw.wpa_flags, raw.rsn_flags),
    )


class WiFiScanner:
    """
    Async WiFi scanner over NetworkManager.

    A failing device or access point is skipped; a scan never fails as a
    whole because of one of them.
    """

    def __init__(self, bus: NetworkManagerBus, config: ScanConfig | None = None) -> None:
        self.bus = bus
        self.config = config or ScanConfig()
        self._stats = {
            "scans_total": 0,
            "aps_found": 0,
            "scan_errors": 0,
        }

    @property
    def stats(self) -> dict:
        return dict(self._stats)

    async def scan(
        self,
        interface: str | None = None,
        timeout: float | None = None,
    ) -> list[AccessPoint]:
        """
        Scan wireless devices and return classified access points.

        Args:
            interface: Only scan the device with this interface name
            timeout: Seconds before returning partial results (None = config)
        """
        self._stats["scans_total"] += 1
        interface = interface or self.config.interface
        timeout = self.config.scan_timeout if timeout is None else timeout
        found: list[AccessPoint] = []

        try:
            await asyncio.wait_for(self._scan_into(found, interface), timeout=timeout or None)
        except asyncio.TimeoutError:
            logger.warning("Scan deadline of %.1fs reached, returning %d APs", timeout, len(found))
            self._stats["scan_errors"] += 1

        self._stats["aps_found"] += len(found)
        logger.debug("Scan complete: %d APs found", len(found))
        return found

    async def _scan_into(self, found: list[AccessPoint], interface: str | None) -> None:
        for device in await self.bus.get_all_devices():
            if not await self._is_target(device, interface):
                continue

            try:
                await self.bus.request_scan(device)
            except BusCallError as e:
                logger.warning("Failed to initiate scan on %s: %s", device, e)
                self._stats["scan_errors"] += 1
                continue

            try:
                ap_paths = await self.bus.get_access_points(device)
            except BusCallError as e:
                logger.warning("Failed to get access points for %s: %s", device, e)
                self._stats["scan_errors"] += 1
                continue

            for ap_path in ap_paths:
                try:
                    raw = await self.bus.get_access_point_properties(ap_path)
                except BusCallError as e:
                    logger.debug("Skipping access point %s: %s", ap_path, e)
                    continue
                found.append(classify_access_point(raw))

    async def _is_target(self, device: str, interface: str | None) -> bool:
        try:
            device_type = await self.bus.get_device_type(device)
            name = await self.bus.get_device_interface(device)
        except BusCallError as e:
            logger.debug("Skipping device %s: %s", device, e)
            return False

        if device_type != DEVICE_TYPE_WIFI:
            return False
        return not interface or name == interface
