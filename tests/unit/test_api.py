"""Unit tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from netlab import __version__
from netlab.apps.netlab_api import create_app
from netlab.apps.netlab_core import WiFiService
from netlab.config import NetlabConfig
from netlab.core.errors import ConnectivityError
from netlab.domain.models import ActivationState, ConnectivityResponse
from netlab.infrastructure.nm.bus import MockNetworkManagerBus


@pytest.fixture
def bus():
    return MockNetworkManagerBus.with_defaults()


@pytest.fixture
def service(bus):
    cfg = NetlabConfig.model_validate({"wifi": {"connect_timeout": 1.0, "hotspot_timeout": 0.2}})
    return WiFiService(bus, cfg)


@pytest.fixture
def client(service):
    """Create test client."""
    with TestClient(create_app(service)) as client:
        yield client


class TestHealthAPI:
    """Test /api/health."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}

    def test_cors_headers(self, client):
        response = client.get("/api/health", headers={"Origin": "http://setup.local"})
        assert "access-control-allow-origin" in response.headers


class TestScanAPI:
    """Test /api/wifi/scan."""

    def test_scan(self, client):
        response = client.post("/api/wifi/scan", json={"max_time_seconds": 5})

        assert response.status_code == 200
        aps = {ap["ssid"]: ap for ap in response.json()["access_points"]}
        assert aps["HomeNetwork"]["channel"] == 6
        assert aps["HomeNetwork"]["rssi"] == -45
        assert aps["HomeNetwork"]["signal_rating"] == "excellent"
        assert aps["CoffeeShop"]["security_type"] == "open"

    def test_scan_too_long(self, client, bus):
        response = client.post("/api/wifi/scan", json={"max_time_seconds": 120})

        assert response.status_code == 400
        assert response.json()["error"] == "ScanDurationError"
        assert bus.calls == []

    def test_scan_negative_duration(self, client):
        response = client.post("/api/wifi/scan", json={"max_time_seconds": -1})

        assert response.status_code == 400
        assert response.json()["error"] == "RequestValidationError"


class TestConnectAPI:
    """Test /api/wifi/connect."""

    def test_connect(self, client):
        response = client.post(
            "/api/wifi/connect",
            json={"ssid": "HomeNetwork", "secret": {"kind": "passphrase", "passphrase": "hunter2hunter2"}},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_open_false(self, client, bus):
        response = client.post(
            "/api/wifi/connect",
            json={"ssid": "CoffeeShop", "secret": {"kind": "open", "is_open": False}},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "SecretValidationError"
        assert bus.calls == []

    def test_malformed_secret_does_not_echo_passphrase(self, client):
        response = client.post(
            "/api/wifi/connect",
            json={"ssid": "x" * 40, "secret": {"kind": "passphrase", "passphrase": "topsecret"}},
        )

        assert response.status_code == 400
        assert "topsecret" not in response.text

    def test_deactivated(self, client, bus):
        bus.activation_outcome = ActivationState.DEACTIVATED

        response = client.post("/api/wifi/connect", json={"ssid": "HomeNetwork", "secret": {"kind": "open"}})

        assert response.status_code == 409
        assert response.json()["error"] == "ConnectionFailedError"

    def test_bus_failure(self, client, bus):
        bus.fail("add_connection", message="permission denied")

        response = client.post("/api/wifi/connect", json={"ssid": "HomeNetwork", "secret": {"kind": "open"}})

        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "BusCallError"
        assert "permission denied" in body["detail"]


class TestHotspotAPI:
    """Test /api/wifi/hotspot."""

    def test_hotspot(self, client, bus):
        response = client.post(
            "/api/wifi/hotspot",
            json={"ssid": "netlab-setup", "passphrase": "changeme123", "interface": "wlan0"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["profile_path"] in bus.connections

    def test_hotspot_unknown_interface(self, client):
        response = client.post(
            "/api/wifi/hotspot",
            json={"ssid": "netlab-setup", "passphrase": "changeme123", "interface": "wlan9"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "DeviceNotFoundError"

    def test_hotspot_timeout(self, client, bus):
        bus.auto_activate = False

        response = client.post("/api/wifi/hotspot", json={"ssid": "netlab-setup", "passphrase": "changeme123"})

        assert response.status_code == 504
        body = response.json()
        assert body["error"] == "HotspotActivationTimeoutError"
        assert "hotspot timeout" in body["detail"]

    def test_short_passphrase(self, client):
        response = client.post("/api/wifi/hotspot", json={"ssid": "netlab-setup", "passphrase": "short"})
        assert response.status_code == 400


class TestConnectivityAPI:
    """Test /api/connectivity."""

    def test_connected(self, client, service, monkeypatch):
        seen = {}

        async def fake_check(timeout_ms=0):
            seen["timeout_ms"] = timeout_ms
            return ConnectivityResponse(is_connected=True, status_code=204, elapsed_ms=12.5)

        monkeypatch.setattr(service, "check_connectivity", fake_check)
        response = client.get("/api/connectivity", params={"timeout_ms": 2000})

        assert response.status_code == 200
        assert response.json()["is_connected"] is True
        assert seen["timeout_ms"] == 2000

    def test_probe_failure(self, client, service, monkeypatch):
        async def fake_check(timeout_ms=0):
            raise ConnectivityError("probe failed: no route")

        monkeypatch.setattr(service, "check_connectivity", fake_check)
        response = client.get("/api/connectivity")

        assert response.status_code == 502
        assert response.json() == {"error": "ConnectivityError", "detail": "probe failed: no route"}
