"""
NetworkManager over the system D-Bus, using python-sdbus-networkmanager.

Every proxy call goes through ``_call`` so the rest of the package only
ever sees ``BusCallError``. Settings are converted by ``.variants``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from sdbus import sd_bus_open_system
from sdbus_async.networkmanager import (
    AccessPoint,
    ActiveConnection,
    NetworkConnectionSettings,
    NetworkDeviceGeneric,
    NetworkDeviceWireless,
    NetworkManager,
    NetworkManagerSettings,
)

from netlab.core.errors import BusCallError

from .bus import (
    NM_ACTIVE_INTERFACE,
    NM_SERVICE,
    ROOT_PATH,
    STATE_CHANGED,
    ConnectionProfile,
    NetworkManagerBus,
    RawAccessPoint,
    SignalSubscription,
    StateChangeSignal,
)
from .variants import decode_profile, encode_profile

logger = logging.getLogger(__name__)


class SdbusNetworkManagerBus(NetworkManagerBus):
    """
    NetworkManagerBus backed by the system bus.

    Every call is wrapped so failures surface as ``BusCallError`` with the
    original sdbus exception as ``__cause__``.
    """

    def __init__(self, bus: Any = None, service_name: str = NM_SERVICE) -> None:
        self._bus = bus if bus is not None else sd_bus_open_system()
        self._service_name = service_name
        self._nm = NetworkManager(self._bus)
        self._settings = NetworkManagerSettings(self._bus)
        logger.info("Connected to %s on the system bus", service_name)

    async def _call(self, operation: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except Exception as e:
            raise BusCallError(operation, e) from e

    async def get_all_devices(self) -> list[str]:
        return list(await self._call("GetAllDevices", self._nm.get_all_devices()))

    async def get_device_type(self, device: str) -> int:
        proxy = NetworkDeviceGeneric(device, self._bus)
        return int(await self._call("Device.DeviceType", proxy.device_type))

    async def get_device_interface(self, device: str) -> str:
        proxy = NetworkDeviceGeneric(device, self._bus)
        return str(await self._call("Device.Interface", proxy.interface))

    async def request_scan(self, device: str) -> None:
        proxy = NetworkDeviceWireless(device, self._bus)
        await self._call("Wireless.RequestScan", proxy.request_scan({}))

    async def get_access_points(self, device: str) -> list[str]:
        proxy = NetworkDeviceWireless(device, self._bus)
        return list(await self._call("Wireless.GetAccessPoints", proxy.get_access_points()))

    async def get_access_point_properties(self, access_point: str) -> RawAccessPoint:
        proxy = AccessPoint(access_point, self._bus)
        return RawAccessPoint(
            ssid=bytes(await self._call("AccessPoint.Ssid", proxy.ssid)),
            hw_address=str(await self._call("AccessPoint.HwAddress", proxy.hw_address)),
            frequency=int(await self._call("AccessPoint.Frequency", proxy.frequency)),
            strength=int(await self._call("AccessPoint.Strength", proxy.strength)),
            wpa_flags=int(await self._call("AccessPoint.WpaFlags", proxy.wpa_flags)),
            rsn_flags=int(await self._call("AccessPoint.RsnFlags", proxy.rsn_flags)),
        )

    async def list_connections(self) -> list[str]:
        return list(await self._call("Settings.ListConnections", self._settings.list_connections()))

    async def add_connection(self, profile: ConnectionProfile) -> str:
        encoded = encode_profile(profile)
        return str(await self._call("Settings.AddConnection", self._settings.add_connection(encoded)))

    async def get_connection_settings(self, connection: str) -> ConnectionProfile:
        proxy = NetworkConnectionSettings(connection, self._bus)
        raw = await self._call("Connection.GetSettings", proxy.get_settings())
        return decode_profile(raw)

    async def delete_connection(self, connection: str) -> None:
        proxy = NetworkConnectionSettings(connection, self._bus)
        await self._call("Connection.Delete", proxy.delete())

    async def activate_connection(
        self, connection: str, device: str, specific_object: str = ROOT_PATH
    ) -> str:
        return str(
            await self._call(
                "ActivateConnection",
                self._nm.activate_connection(connection, device, specific_object),
            )
        )

    async def get_active_connections(self) -> list[str]:
        return list(await self._call("ActiveConnections", self._nm.active_connections))

    async def get_active_connection_devices(self, active: str) -> list[str]:
        proxy = ActiveConnection(active, self._bus)
        return list(await self._call("Active.Devices", proxy.devices))

    async def get_active_connection_profile(self, active: str) -> str:
        proxy = ActiveConnection(active, self._bus)
        return str(await self._call("Active.Connection", proxy.connection))

    async def deactivate_connection(self, active: str) -> None:
        await self._call("DeactivateConnection", self._nm.deactivate_connection(active))

    async def subscribe_state_changes(self, buffer: int = 10) -> SignalSubscription:
        ready = asyncio.Event()
        reader: asyncio.Task[None] | None = None

        async def _stop(_: SignalSubscription) -> None:
            if reader is not None:
                reader.cancel()
                try:
                    await reader
                except asyncio.CancelledError:
                    pass

        sub = SignalSubscription(buffer=buffer, on_close=_stop)
        reader = asyncio.create_task(self._read_signals(sub, ready))
        await ready.wait()
        return sub

    async def _read_signals(self, sub: SignalSubscription, ready: asyncio.Event) -> None:
        try:
            signals = aiter(ActiveConnection.state_changed.catch_anywhere(self._service_name, self._bus))
            first = asyncio.ensure_future(anext(signals))
            # The first step sends AddMatch before it suspends; calls made once
            # ready is set are queued behind it on the same connection.
            await asyncio.sleep(0)
            ready.set()

            self._publish(sub, *(await first))
            async for path, args in signals:
                self._publish(sub, path, args)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("State-change signal reader stopped")
        finally:
            ready.set()

    @staticmethod
    def _publish(sub: SignalSubscription, path: str, args: Any) -> None:
        state, reason = (tuple(args) + (0, 0))[:2]
        sub.publish(
            StateChangeSignal(
                path=path,
                new_state=int(state),
                reason=int(reason),
                interface=NM_ACTIVE_INTERFACE,
                member=STATE_CHANGED,
            )
        )

    async def close(self) -> None:
        close = getattr(self._bus, "close", None)
        if close is not None:
            close()
