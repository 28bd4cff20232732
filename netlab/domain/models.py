"""netlab Domain Models - Pydantic models for access points, secrets and requests."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SecurityType(str, Enum):
    """WiFi security classification of an access point."""

    OPEN = "open"
    WEP = "wep"
    WPA_PSK = "wpa_psk"
    WPA_EAP = "wpa_eap"
    WPA2_PSK = "wpa2_psk"
    WPA2_EAP = "wpa2_eap"
    WPA3_PSK = "wpa3_psk"
    WPA3_EAP = "wpa3_eap"
    UNKNOWN = "unknown"


class SignalRating(str, Enum):
    """Qualitative signal strength."""

    NONE = "none"
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


class ActivationState(IntEnum):
    """NMActiveConnectionState as reported by StateChanged signals."""

    UNKNOWN = 0
    ACTIVATING = 1
    ACTIVATED = 2
    DEACTIVATING = 3
    DEACTIVATED = 4

    @classmethod
    def from_raw(cls, value: int) -> ActivationState:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class EapConfig(BaseModel):
    """802.1X credentials for enterprise networks."""

    identity: str = Field(..., min_length=1)
    password: str = Field(default="", repr=False)
    client_certificate: str | None = None  # path on the device
    ca_certificate: str | None = None


class AccessPoint(BaseModel):
    """Classified WiFi access point, built fresh per scan."""

    model_config = ConfigDict(frozen=True)

    ssid: str = ""
    bssid: str
    rssi: int  # dBm
    frequency: int  # MHz
    channel: int = 0  # 0 = unknown
    signal_rating: SignalRating = SignalRating.NONE
    security_type: SecurityType = SecurityType.UNKNOWN
    eap_config: EapConfig | None = None

    @property
    def is_hidden(self) -> bool:
        return not self.ssid

    @property
    def is_5ghz(self) -> bool:
        return 5000 <= self.frequency < 5925


# =============================================================================
# Connection secrets (tagged union)
# =============================================================================

class OpenSecret(BaseModel):
    """Open network. ``is_open`` must be true."""

    kind: Literal["open"] = "open"
    is_open: bool = True


class PassphraseSecret(BaseModel):
    """WPA/WPA2 personal."""

    kind: Literal["passphrase"] = "passphrase"
    passphrase: str = Field(..., min_length=1, repr=False)


class EnterpriseSecret(BaseModel):
    """WPA/WPA2 enterprise (EAP)."""

    kind: Literal["enterprise"] = "enterprise"
    eap: EapConfig


ConnectionSecret = Annotated[
    Union[OpenSecret, PassphraseSecret, EnterpriseSecret],
    Field(discriminator="kind"),
]


# =============================================================================
# Requests / responses
# =============================================================================

class ScanRequest(BaseModel):
    """Scan request. ``max_time_seconds`` of 0 means the configured default."""

    interface: str | None = None
    max_time_seconds: int = Field(default=0, ge=0)


class ScanResponse(BaseModel):
    access_points: list[AccessPoint] = Field(default_factory=list)


class ConnectRequest(BaseModel):
    ssid: str = Field(..., min_length=1, max_length=32)
    secret: ConnectionSecret


class ConnectResponse(BaseModel):
    success: bool = True


class HotspotRequest(BaseModel):
    ssid: str = Field(..., min_length=1, max_length=32)
    passphrase: str = Field(..., min_length=8, max_length=63, repr=False)
    interface: str | None = None


class HotspotResponse(BaseModel):
    success: bool = True
    profile_path: str = ""
    active_connection_path: str = ""
    device_path: str = ""
    replaced_profiles: list[str] = Field(default_factory=list)


class ConnectivityResponse(BaseModel):
    is_connected: bool
    status_code: int = 0
    elapsed_ms: float = 0.0
