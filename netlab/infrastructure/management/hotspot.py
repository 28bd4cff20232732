"""
Hotspot Workflow.

Brings up a WPA2 access point through NetworkManager:

1. Pick the device (exact interface match, or the first wireless device)
2. Delete every stored profile with the same SSID (idempotent replacement)
3. Build an AP profile with shared static IPv4 addressing and add it
4. Deactivate active connections on that device (best-effort)
5. Subscribe to state changes, activate the profile
6. Wait until an ACTIVATED signal resolves back to *our* settings profile

Step 6 needs path indirection: StateChanged comes from an
``/ActiveConnection/<n>`` object while we hold a ``/Settings/<n>`` path, so
each candidate is resolved through the active connection's ``Connection``
property. DEACTIVATED is not a failure here; it usually reports the
connections torn down in step 4.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from netlab.core.errors import BusCallError, DeviceNotFoundError, HotspotActivationTimeoutError
from netlab.domain.models import ActivationState
from netlab.infrastructure.nm.bus import ROOT_PATH, NetworkManagerBus, StateChangeSignal
from netlab.infrastructure.nm.correlator import SignalCorrelator
from netlab.infrastructure.nm.profiles import (
    DEFAULT_HOTSPOT_ADDRESSING,
    HotspotAddressing,
    build_hotspot_profile,
)

from .best_effort import BestEffortReport, deactivate_best_effort
from .replace import remove_profiles_for_ssid

logger = logging.getLogger(__name__)


@dataclass
class HotspotResult:
    """A confirmed running hotspot."""

    ssid: str
    profile_path: str
    active_connection_path: str
    device_path: str
    replaced_profiles: list[str] = field(default_factory=list)
    deactivated: BestEffortReport | None = None


class HotspotWorkflow:
    """
    Start a NetworkManager-managed hotspot.

    Usage:
        workflow = HotspotWorkflow(bus)
        result = await workflow.start("netlab-setup", "changeme123", interface="wlan0")
    """

    def __init__(
        self,
        bus: NetworkManagerBus,
        timeout: float = 30.0,
        signal_buffer: int = 10,
        addressing: HotspotAddressing = DEFAULT_HOTSPOT_ADDRESSING,
        band: str = "bg",
    ) -> None:
        self.bus = bus
        self.timeout = timeout
        self.signal_buffer = signal_buffer
        self.addressing = addressing
        self.band = band

    async def start(
        self,
        ssid: str,
        passphrase: str,
        interface: str | None = None,
    ) -> HotspotResult:
        # Resolve the device first so a missing one leaves no profile behind
        device = await self.bus.find_wifi_device(interface)
        if device is None:
            if interface:
                raise DeviceNotFoundError(f"no WiFi device with interface {interface}")
            raise DeviceNotFoundError("no WiFi device found")
        logger.info("Using WiFi device %s", device)

        replaced = await remove_profiles_for_ssid(self.bus, ssid)

        profile = build_hotspot_profile(
            ssid,
            passphrase,
            interface=interface,
            addressing=self.addressing,
            band=self.band,
        )
        profile_path = await self.bus.add_connection(profile)
        logger.info("Added hotspot profile %s for %s", profile_path, ssid)

        deactivated = await self._release_device(device)
        if not deactivated.ok:
            logger.warning("Continuing despite deactivation failures: %s", deactivated.failed)

        async with await self.bus.subscribe_state_changes(self.signal_buffer) as subscription:
            logger.info("Activating connection: %s", profile_path)
            active = await self.bus.activate_connection(profile_path, device, ROOT_PATH)

            correlator = SignalCorrelator(
                subscription,
                deadline=self.timeout,
                timeout_error=HotspotActivationTimeoutError,
                label="hotspot",
            )

            async def is_our_profile(signal: StateChangeSignal) -> bool:
                resolved = await self.bus.get_active_connection_profile(signal.path)
                if resolved != profile_path:
                    logger.debug("Unexpected connection path: %s (expected: %s)", resolved, profile_path)
                    return False
                return True

            try:
                await correlator.wait(match=is_our_profile, terminal=(ActivationState.ACTIVATED,))
            except asyncio.CancelledError:
                logger.warning("Hotspot %s cancelled, deactivating %s", ssid, active)
                await deactivate_best_effort(self.bus, [active], step="cancel-hotspot")
                raise

        logger.info("Hotspot activated: %s", ssid)
        return HotspotResult(
            ssid=ssid,
            profile_path=profile_path,
            active_connection_path=active,
            device_path=device,
            replaced_profiles=replaced,
            deactivated=deactivated,
        )

    async def _release_device(self, device: str) -> BestEffortReport:
        """Deactivate every active connection bound to ``device``."""
        on_device: list[str] = []
        try:
            active_connections = await self.bus.get_active_connections()
        except BusCallError as e:
            logger.warning("Failed to list active connections: %s", e)
            return BestEffortReport(step="release-device", failed={"*": str(e)})

        for active in active_connections:
            try:
                devices = await self.bus.get_active_connection_devices(active)
            except BusCallError as e:
                logger.debug("Skipping active connection %s: %s", active, e)
                continue
            if device in devices:
                on_device.append(active)

        return await deactivate_best_effort(self.bus, on_device, step="release-device")
