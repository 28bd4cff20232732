"""
WiFi Service - the operations exposed to the CLI and the HTTP API.

Validates requests, wires the scanner, workflows and connectivity probe
from configuration, and maps workflow results to response models.
"""

from __future__ import annotations

import logging

from netlab.config import NetlabConfig
from netlab.core.errors import ScanDurationError
from netlab.domain.models import (
    ConnectivityResponse,
    ConnectRequest,
    ConnectResponse,
    HotspotRequest,
    HotspotResponse,
    ScanRequest,
    ScanResponse,
)
from netlab.infrastructure.connectivity.checker import ConnectivityChecker
from netlab.infrastructure.management.connection import ClientConnectionWorkflow
from netlab.infrastructure.management.hotspot import HotspotWorkflow
from netlab.infrastructure.nm.bus import MockNetworkManagerBus, NetworkManagerBus
from netlab.infrastructure.nm.profiles import HotspotAddressing
from netlab.infrastructure.wifi.scanner import ScanConfig, WiFiScanner

logger = logging.getLogger(__name__)


def create_bus(cfg: NetlabConfig, mock: bool | None = None) -> NetworkManagerBus:
    """Mock bus when requested, otherwise NetworkManager on the system bus."""
    if cfg.bus.mock if mock is None else mock:
        logger.info("Using mock NetworkManager bus")
        return MockNetworkManagerBus.with_defaults()

    from netlab.infrastructure.nm.sdbus_bus import SdbusNetworkManagerBus

    return SdbusNetworkManagerBus(service_name=cfg.bus.service_name)


class WiFiService:
    """
    Scan, connect and hotspot operations over one NetworkManager bus.

    Usage:
        service = WiFiService(bus, cfg)
        response = await service.scan(ScanRequest(max_time_seconds=10))
    """

    def __init__(self, bus: NetworkManagerBus, cfg: NetlabConfig | None = None) -> None:
        self.bus = bus
        self.cfg = cfg or NetlabConfig()
        wifi = self.cfg.wifi
        hotspot = self.cfg.hotspot

        self.scanner = WiFiScanner(bus, ScanConfig(scan_timeout=float(wifi.scan_default_seconds)))
        self.connection = ClientConnectionWorkflow(
            bus,
            timeout=wifi.connect_timeout,
            signal_buffer=wifi.signal_buffer,
        )
        self.hotspot = HotspotWorkflow(
            bus,
            timeout=wifi.hotspot_timeout,
            signal_buffer=wifi.signal_buffer,
            addressing=HotspotAddressing(
                address=hotspot.address,
                prefix=hotspot.prefix,
                gateway=hotspot.gateway,
            ),
            band=hotspot.band,
        )
        self.checker = ConnectivityChecker(
            url=self.cfg.connectivity.url,
            timeout_ms=self.cfg.connectivity.timeout_ms,
        )

    async def scan(self, request: ScanRequest) -> ScanResponse:
        cap = self.cfg.wifi.scan_max_seconds
        if request.max_time_seconds > cap:
            raise ScanDurationError(
                f"max_time_seconds must be at most {cap}, got {request.max_time_seconds}"
            )

        timeout = float(request.max_time_seconds) if request.max_time_seconds else None
        access_points = await self.scanner.scan(interface=request.interface, timeout=timeout)
        return ScanResponse(access_points=access_points)

    async def connect(self, request: ConnectRequest) -> ConnectResponse:
        await self.connection.connect(request.ssid, request.secret)
        return ConnectResponse(success=True)

    async def start_hotspot(self, request: HotspotRequest) -> HotspotResponse:
        result = await self.hotspot.start(
            request.ssid,
            request.passphrase,
            interface=request.interface,
        )
        return HotspotResponse(
            success=True,
            profile_path=result.profile_path,
            active_connection_path=result.active_connection_path,
            device_path=result.device_path,
            replaced_profiles=result.replaced_profiles,
        )

    async def check_connectivity(self, timeout_ms: int = 0) -> ConnectivityResponse:
        return await self.checker.check(timeout_ms)

    async def close(self) -> None:
        await self.bus.close()
