"""
NetworkManager Bus Abstraction
==============================

The orchestration core talks to NetworkManager only through
``NetworkManagerBus``: device enumeration, access point reads, the settings
collection, connection activation, and a subscribable stream of
active-connection ``StateChanged`` signals.

Two implementations exist:

- ``SdbusNetworkManagerBus`` (``sdbus_bus.py``): the real system bus
- ``MockNetworkManagerBus`` (here): an in-memory NetworkManager for tests
  and ``--mock`` runs

Each workflow invocation opens its own ``SignalSubscription`` and closes it
on every exit path:

    async with await bus.subscribe_state_changes(buffer=10) as sub:
        signal = await sub.get()
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from netlab.core.errors import BusCallError
from netlab.domain.models import ActivationState

logger = logging.getLogger(__name__)

NM_SERVICE = "org.freedesktop.NetworkManager"
NM_PATH = "/org/freedesktop/NetworkManager"
NM_SETTINGS_PATH = "/org/freedesktop/NetworkManager/Settings"
NM_ACTIVE_INTERFACE = "org.freedesktop.NetworkManager.Connection.Active"
STATE_CHANGED = "StateChanged"
ROOT_PATH = "/"

# NMDeviceType
DEVICE_TYPE_ETHERNET = 1
DEVICE_TYPE_WIFI = 2

ConnectionProfile = dict[str, dict[str, Any]]


@dataclass(frozen=True)
class StateChangeSignal:
    """A StateChanged signal: (new state, old state, reason) plus its sender path."""

    path: str
    new_state: int
    old_state: int = 0
    reason: int = 0
    interface: str = NM_ACTIVE_INTERFACE
    member: str = STATE_CHANGED

    @property
    def state(self) -> ActivationState:
        return ActivationState.from_raw(self.new_state)

    @property
    def is_active_state_change(self) -> bool:
        return self.interface == NM_ACTIVE_INTERFACE and self.member == STATE_CHANGED


@dataclass(frozen=True)
class RawAccessPoint:
    """Unclassified access point properties as NetworkManager reports them."""

    ssid: bytes
    hw_address: str
    frequency: int
    strength: int
    wpa_flags: int
    rsn_flags: int


class SignalSubscription:
    """
    Invocation-scoped, buffered channel of state-change signals.

    ``publish`` never blocks the producer: when the buffer is full the signal
    is dropped and counted.
    """

    def __init__(
        self,
        buffer: int = 10,
        on_close: Callable[[SignalSubscription], Awaitable[None]] | None = None,
    ) -> None:
        self._queue: asyncio.Queue[StateChangeSignal] = asyncio.Queue(maxsize=buffer)
        self._on_close = on_close
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, signal: StateChangeSignal) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(signal)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Signal buffer full, dropped %s from %s", signal.member, signal.path)
            return False

    async def get(self) -> StateChangeSignal:
        return await self._queue.get()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close(self)

    async def __aenter__(self) -> SignalSubscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class NetworkManagerBus(ABC):
    """Operations the core needs from NetworkManager. Failures raise BusCallError."""

    # Devices
    @abstractmethod
    async def get_all_devices(self) -> list[str]: ...

    @abstractmethod
    async def get_device_type(self, device: str) -> int: ...

    @abstractmethod
    async def get_device_interface(self, device: str) -> str: ...

    @abstractmethod
    async def request_scan(self, device: str) -> None: ...

    @abstractmethod
    async def get_access_points(self, device: str) -> list[str]: ...

    @abstractmethod
    async def get_access_point_properties(self, access_point: str) -> RawAccessPoint: ...

    # Settings
    @abstractmethod
    async def list_connections(self) -> list[str]: ...

    @abstractmethod
    async def add_connection(self, profile: ConnectionProfile) -> str: ...

    @abstractmethod
    async def get_connection_settings(self, connection: str) -> ConnectionProfile: ...

    @abstractmethod
    async def delete_connection(self, connection: str) -> None: ...

    # Activation
    @abstractmethod
    async def activate_connection(
        self, connection: str, device: str, specific_object: str = ROOT_PATH
    ) -> str: ...

    @abstractmethod
    async def get_active_connections(self) -> list[str]: ...

    @abstractmethod
    async def get_active_connection_devices(self, active: str) -> list[str]: ...

    @abstractmethod
    async def get_active_connection_profile(self, active: str) -> str: ...

    @abstractmethod
    async def deactivate_connection(self, active: str) -> None: ...

    # Signals
    @abstractmethod
    async def subscribe_state_changes(self, buffer: int = 10) -> SignalSubscription: ...

    async def close(self) -> None:
        """Release the bus connection."""

    async def find_wifi_device(self, interface: str | None = None) -> str | None:
        """
        Return the first device matching ``interface`` exactly, or, without a
        filter, the first wireless device. Devices whose properties cannot be
        read are skipped.
        """
        for device in await self.get_all_devices():
            try:
                if interface:
                    if await self.get_device_interface(device) == interface:
                        return device
                    continue
                if await self.get_device_type(device) == DEVICE_TYPE_WIFI:
                    return device
            except BusCallError as e:
                logger.debug("Skipping device %s: %s", device, e)
        return None


# =============================================================================
# In-memory NetworkManager
# =============================================================================

@dataclass
class MockDevice:
    path: str
    interface: str
    device_type: int = DEVICE_TYPE_WIFI
    access_points: list[str] = field(default_factory=list)


@dataclass
class MockActiveConnection:
    path: str
    connection: str
    devices: list[str]
    state: ActivationState = ActivationState.ACTIVATING


class MockNetworkManagerBus(NetworkManagerBus):
    """
    In-memory NetworkManager.

    Activation emits ACTIVATING then ``activation_outcome`` for the new active
    connection after ``activation_delay`` seconds; set ``auto_activate`` to
    False to drive signals by hand with ``emit_state``. Every operation is
    appended to ``calls`` and failures are injected with ``fail``.
    """

    def __init__(self) -> None:
        self.devices: dict[str, MockDevice] = {}
        self.access_points: dict[str, RawAccessPoint] = {}
        self.connections: dict[str, ConnectionProfile] = {}
        self.active: dict[str, MockActiveConnection] = {}
        self.calls: list[tuple[str, ...]] = []
        self.auto_activate = True
        self.activation_outcome = ActivationState.ACTIVATED
        self.activation_delay = 0.0
        self.subscriptions_opened = 0
        self._subscriptions: list[SignalSubscription] = []
        self._failures: dict[tuple[str, str | None], str] = {}
        self._ids = itertools.count(1)

    @classmethod
    def with_defaults(cls) -> MockNetworkManagerBus:
        """A wired device plus wlan0 seeing four networks."""
        bus = cls()
        bus.add_device("eth0", DEVICE_TYPE_ETHERNET)
        wlan = bus.add_device("wlan0")
        bus.add_access_point(wlan, b"HomeNetwork", "AA:BB:CC:DD:EE:01", 2437, 45, 0, 0x0188)
        bus.add_access_point(wlan, b"Office5G", "AA:BB:CC:DD:EE:02", 5180, 62, 0, 0x0288)
        bus.add_access_point(wlan, b"CoffeeShop", "AA:BB:CC:DD:EE:03", 2412, 71, 0, 0)
        bus.add_access_point(wlan, b"", "AA:BB:CC:DD:EE:04", 2462, 83, 0x0104, 0)
        return bus

    # ------------------------------------------------------------------
    # Fixture helpers
    # ------------------------------------------------------------------

    def add_device(self, interface: str, device_type: int = DEVICE_TYPE_WIFI) -> str:
        path = f"{NM_PATH}/Devices/{len(self.devices) + 1}"
        self.devices[path] = MockDevice(path=path, interface=interface, device_type=device_type)
        return path

    def add_access_point(
        self,
        device: str,
        ssid: bytes,
        bssid: str,
        frequency: int,
        strength: int,
        wpa_flags: int = 0,
        rsn_flags: int = 0,
    ) -> str:
        path = f"{NM_PATH}/AccessPoint/{len(self.access_points) + 1}"
        self.access_points[path] = RawAccessPoint(
            ssid=ssid,
            hw_address=bssid,
            frequency=frequency,
            strength=strength,
            wpa_flags=wpa_flags,
            rsn_flags=rsn_flags,
        )
        self.devices[device].access_points.append(path)
        return path

    def add_active_connection(
        self,
        connection: str,
        devices: list[str],
        state: ActivationState = ActivationState.ACTIVATED,
    ) -> str:
        path = f"{NM_PATH}/ActiveConnection/{next(self._ids)}"
        self.active[path] = MockActiveConnection(path, connection, list(devices), state)
        return path

    def fail(self, operation: str, target: str | None = None, message: str = "injected failure") -> None:
        """Make ``operation`` (optionally only for ``target``) raise BusCallError."""
        self._failures[(operation, target)] = message

    def emit(self, signal: StateChangeSignal) -> None:
        for sub in list(self._subscriptions):
            sub.publish(signal)

    def emit_state(self, path: str, state: ActivationState, old: ActivationState = ActivationState.UNKNOWN) -> None:
        if path in self.active:
            self.active[path].state = state
        self.emit(StateChangeSignal(path=path, new_state=int(state), old_state=int(old)))

    @property
    def open_subscriptions(self) -> int:
        return len(self._subscriptions)

    def operations(self, *names: str) -> list[tuple[str, ...]]:
        """Recorded calls filtered by operation name."""
        return [c for c in self.calls if c[0] in names]

    def _record(self, operation: str, target: str | None = None) -> None:
        self.calls.append((operation,) if target is None else (operation, target))
        message = self._failures.get((operation, target)) or self._failures.get((operation, None))
        if message:
            raise BusCallError(operation, message)

    def _device(self, device: str) -> MockDevice:
        if device not in self.devices:
            raise BusCallError("device", f"unknown object {device}")
        return self.devices[device]

    def _active(self, active: str) -> MockActiveConnection:
        if active not in self.active:
            raise BusCallError("active-connection", f"unknown object {active}")
        return self.active[active]

    # ------------------------------------------------------------------
    # NetworkManagerBus
    # ------------------------------------------------------------------

    async def get_all_devices(self) -> list[str]:
        self._record("get_all_devices")
        return list(self.devices)

    async def get_device_type(self, device: str) -> int:
        self._record("get_device_type", device)
        return self._device(device).device_type

    async def get_device_interface(self, device: str) -> str:
        self._record("get_device_interface", device)
        return self._device(device).interface

    async def request_scan(self, device: str) -> None:
        self._record("request_scan", device)
        self._device(device)

    async def get_access_points(self, device: str) -> list[str]:
        self._record("get_access_points", device)
        return list(self._device(device).access_points)

    async def get_access_point_properties(self, access_point: str) -> RawAccessPoint:
        self._record("get_access_point_properties", access_point)
        if access_point not in self.access_points:
            raise BusCallError("access-point", f"unknown object {access_point}")
        return self.access_points[access_point]

    async def list_connections(self) -> list[str]:
        self._record("list_connections")
        return list(self.connections)

    async def add_connection(self, profile: ConnectionProfile) -> str:
        self._record("add_connection")
        path = f"{NM_SETTINGS_PATH}/{next(self._ids)}"
        self.connections[path] = copy.deepcopy(profile)
        return path

    async def get_connection_settings(self, connection: str) -> ConnectionProfile:
        self._record("get_connection_settings", connection)
        if connection not in self.connections:
            raise BusCallError("settings", f"unknown object {connection}")
        return copy.deepcopy(self.connections[connection])

    async def delete_connection(self, connection: str) -> None:
        self._record("delete_connection", connection)
        if self.connections.pop(connection, None) is None:
            raise BusCallError("delete", f"unknown object {connection}")

    async def activate_connection(
        self, connection: str, device: str, specific_object: str = ROOT_PATH
    ) -> str:
        self._record("activate_connection", connection)
        if connection not in self.connections:
            raise BusCallError("activate", f"unknown connection {connection}")
        self._device(device)
        path = self.add_active_connection(connection, [device], ActivationState.ACTIVATING)
        if self.auto_activate:
            loop = asyncio.get_running_loop()
            loop.call_soon(self.emit_state, path, ActivationState.ACTIVATING)
            loop.call_later(
                self.activation_delay,
                self.emit_state,
                path,
                self.activation_outcome,
                ActivationState.ACTIVATING,
            )
        return path

    async def get_active_connections(self) -> list[str]:
        self._record("get_active_connections")
        return list(self.active)

    async def get_active_connection_devices(self, active: str) -> list[str]:
        self._record("get_active_connection_devices", active)
        return list(self._active(active).devices)

    async def get_active_connection_profile(self, active: str) -> str:
        self._record("get_active_connection_profile", active)
        return self._active(active).connection

    async def deactivate_connection(self, active: str) -> None:
        self._record("deactivate_connection", active)
        conn = self._active(active)
        del self.active[active]
        self.emit_state(conn.path, ActivationState.DEACTIVATED, conn.state)

    async def subscribe_state_changes(self, buffer: int = 10) -> SignalSubscription:
        self._record("subscribe_state_changes")
        sub = SignalSubscription(buffer=buffer, on_close=self._unsubscribe)
        self._subscriptions.append(sub)
        self.subscriptions_opened += 1
        return sub

    async def _unsubscribe(self, sub: SignalSubscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
