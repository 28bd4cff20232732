"""
Unit tests for the sdbus NetworkManager adapter.

The sdbus proxies are replaced with in-process fakes, so no system bus is
needed; the sdbus packages still have to be importable.
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

# Skip if sdbus is not available
pytest.importorskip("sdbus_async.networkmanager")

from netlab.core.errors import BusCallError  # noqa: E402
from netlab.domain.models import ActivationState  # noqa: E402
from netlab.infrastructure.nm import sdbus_bus  # noqa: E402
from netlab.infrastructure.nm.bus import NM_ACTIVE_INTERFACE, NM_SERVICE, STATE_CHANGED  # noqa: E402

DEVICE = "/org/freedesktop/NetworkManager/Devices/3"
ACTIVE_1 = "/org/freedesktop/NetworkManager/ActiveConnection/1"
ACTIVE_2 = "/org/freedesktop/NetworkManager/ActiveConnection/2"


class FakeDbusError(Exception):
    """Stands in for an sdbus method-call error."""


async def _value(value):
    return value


async def _fail(message):
    raise FakeDbusError(message)


class FakeSystemBus:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeNetworkManager:
    def __init__(self, bus):
        self.bus = bus

    async def get_all_devices(self):
        return [DEVICE]

    async def deactivate_connection(self, active):
        raise FakeDbusError("org.freedesktop.NetworkManager.ConnectionNotActive")


class FakeSettings:
    def __init__(self, bus):
        self.bus = bus


class FakeDevice:
    def __init__(self, path, bus):
        self.path = path

    @property
    def interface(self):
        return _value("wlan0")

    @property
    def device_type(self):
        return _fail("org.freedesktop.DBus.Error.UnknownObject")


class FakeStateChanged:
    """``catch_anywhere`` yields the queued signals, then blocks until closed."""

    def __init__(self, items=(), error=None):
        self.items = list(items)
        self.error = error
        self.service_name = None
        self.entered = False
        self.finished = False

    async def catch_anywhere(self, service_name, bus):
        self.service_name = service_name
        self.entered = True
        try:
            if self.error is not None:
                raise self.error
            for item in self.items:
                yield item
            await asyncio.Event().wait()
        finally:
            self.finished = True


@pytest.fixture
def state_changed():
    return FakeStateChanged([(ACTIVE_1, (2, 0)), (ACTIVE_2, (4, 3))])


@pytest.fixture
def system_bus():
    return FakeSystemBus()


@pytest.fixture
def nm(monkeypatch, system_bus, state_changed):
    monkeypatch.setattr(sdbus_bus, "NetworkManager", FakeNetworkManager)
    monkeypatch.setattr(sdbus_bus, "NetworkManagerSettings", FakeSettings)
    monkeypatch.setattr(sdbus_bus, "NetworkDeviceGeneric", FakeDevice)
    monkeypatch.setattr(sdbus_bus, "ActiveConnection", SimpleNamespace(state_changed=state_changed))
    return sdbus_bus.SdbusNetworkManagerBus(bus=system_bus)


class TestCallWrapping:
    """Test that proxy failures surface as BusCallError."""

    @pytest.mark.asyncio
    async def test_successful_calls_pass_through(self, nm):
        assert await nm.get_all_devices() == [DEVICE]
        assert await nm.get_device_interface(DEVICE) == "wlan0"

    @pytest.mark.asyncio
    async def test_property_failure_keeps_cause(self, nm):
        with pytest.raises(BusCallError) as exc_info:
            await nm.get_device_type(DEVICE)

        assert exc_info.value.operation == "Device.DeviceType"
        assert isinstance(exc_info.value.__cause__, FakeDbusError)
        assert "UnknownObject" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_method_failure_keeps_cause(self, nm):
        with pytest.raises(BusCallError) as exc_info:
            await nm.deactivate_connection(ACTIVE_1)

        assert exc_info.value.operation == "DeactivateConnection"
        assert isinstance(exc_info.value.__cause__, FakeDbusError)

    @pytest.mark.asyncio
    async def test_unreadable_device_is_skipped_by_lookup(self, nm):
        assert await nm.find_wifi_device("wlan0") == DEVICE
        assert await nm.find_wifi_device() is None

    @pytest.mark.asyncio
    async def test_close_closes_the_bus(self, nm, system_bus):
        await nm.close()
        assert system_bus.closed


class TestStateChangeSubscription:
    """Test the StateChanged reader task."""

    @pytest.mark.asyncio
    async def test_match_is_requested_before_subscribe_returns(self, nm, state_changed):
        async with await nm.subscribe_state_changes() as sub:
            assert state_changed.entered
            assert state_changed.service_name == NM_SERVICE
            assert not sub.closed

    @pytest.mark.asyncio
    async def test_signal_args_become_state_change_signals(self, nm):
        async with await nm.subscribe_state_changes() as sub:
            first = await asyncio.wait_for(sub.get(), timeout=1.0)
            second = await asyncio.wait_for(sub.get(), timeout=1.0)

        assert first.path == ACTIVE_1
        assert first.state is ActivationState.ACTIVATED
        assert first.reason == 0
        assert first.interface == NM_ACTIVE_INTERFACE
        assert first.member == STATE_CHANGED
        assert first.is_active_state_change

        assert second.path == ACTIVE_2
        assert second.state is ActivationState.DEACTIVATED
        assert second.reason == 3

    @pytest.mark.asyncio
    async def test_close_cancels_and_awaits_reader(self, nm, state_changed):
        before = asyncio.all_tasks()
        sub = await nm.subscribe_state_changes()
        readers = asyncio.all_tasks() - before
        assert len(readers) == 1
        reader = readers.pop()

        await sub.close()

        assert reader.done()
        assert reader.cancelled()
        assert state_changed.finished
        assert asyncio.all_tasks() - before == set()

    @pytest.mark.asyncio
    async def test_reader_failure_does_not_block_subscribe(self, monkeypatch, nm):
        broken = FakeStateChanged(error=FakeDbusError("org.freedesktop.DBus.Error.AccessDenied"))
        monkeypatch.setattr(sdbus_bus, "ActiveConnection", SimpleNamespace(state_changed=broken))

        sub = await asyncio.wait_for(nm.subscribe_state_changes(), timeout=1.0)
        await sub.close()

        assert broken.entered
        assert sub.closed
