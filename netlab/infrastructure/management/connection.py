"""
Client Connection Workflow.

Joins a WiFi network as a client:

1. Validate the secret variant (no bus traffic on failure)
2. Locate the first wireless device
3. Delete stored profiles with the same SSID, then add the new profile
4. Subscribe to state changes, activate the profile
5. Wait for ACTIVATED (success) or DEACTIVATED (failure) with a deadline

Only one activation is in flight per invocation, so any active-connection
StateChanged signal is accepted without an identity filter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from netlab.core.errors import ConnectionFailedError, ConnectionTimeoutError, DeviceNotFoundError
from netlab.domain.models import ActivationState
from netlab.infrastructure.nm.bus import ROOT_PATH, NetworkManagerBus
from netlab.infrastructure.nm.correlator import SignalCorrelator
from netlab.infrastructure.nm.profiles import build_client_profile

from .best_effort import deactivate_best_effort
from .replace import remove_profiles_for_ssid

logger = logging.getLogger(__name__)


@dataclass
class ConnectionResult:
    """A confirmed client connection."""

    ssid: str
    profile_path: str
    active_connection_path: str
    device_path: str
    replaced_profiles: list[str] = field(default_factory=list)


class ClientConnectionWorkflow:
    """
    Connect to a WiFi network through NetworkManager.

    Usage:
        workflow = ClientConnectionWorkflow(bus, timeout=60.0)
        result = await workflow.connect("HomeNetwork", PassphraseSecret(passphrase="..."))
    """

    def __init__(
        self,
        bus: NetworkManagerBus,
        timeout: float = 60.0,
        signal_buffer: int = 10,
    ) -> None:
        self.bus = bus
        self.timeout = timeout
        self.signal_buffer = signal_buffer

    async def connect(self, ssid: str, secret: object) -> ConnectionResult:
        # Raises SecretValidationError before any bus call
        profile = build_client_profile(ssid, secret)
        logger.info("Connecting to %s (%s)", ssid, getattr(secret, "kind", "?"))

        device = await self.bus.find_wifi_device()
        if device is None:
            raise DeviceNotFoundError("no WiFi device found")

        replaced = await remove_profiles_for_ssid(self.bus, ssid)
        profile_path = await self.bus.add_connection(profile)
        logger.debug("Added connection profile %s", profile_path)

        async with await self.bus.subscribe_state_changes(self.signal_buffer) as subscription:
            active = await self.bus.activate_connection(profile_path, device, ROOT_PATH)
            logger.debug("Activation started: %s on %s", active, device)

            correlator = SignalCorrelator(
                subscription,
                deadline=self.timeout,
                timeout_error=ConnectionTimeoutError,
                label="connection",
            )
            try:
                outcome = await correlator.wait()
            except asyncio.CancelledError:
                logger.warning("Connection to %s cancelled, deactivating %s", ssid, active)
                await deactivate_best_effort(self.bus, [active], step="cancel-connect")
                raise

        if outcome.state is ActivationState.DEACTIVATED:
            raise ConnectionFailedError(f"connection to {ssid} deactivated")

        logger.info("Connected to %s", ssid)
        return ConnectionResult(
            ssid=ssid,
            profile_path=profile_path,
            active_connection_path=active,
            device_path=device,
            replaced_profiles=replaced,
        )
