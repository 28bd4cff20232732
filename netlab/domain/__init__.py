"""netlab Domain Layer - Access point, secret and request models."""

from .models import (
    AccessPoint,
    ActivationState,
    ConnectionSecret,
    ConnectivityResponse,
    ConnectRequest,
    ConnectResponse,
    EapConfig,
    EnterpriseSecret,
    HotspotRequest,
    HotspotResponse,
    OpenSecret,
    PassphraseSecret,
    ScanRequest,
    ScanResponse,
    SecurityType,
    SignalRating,
)

__all__ = [
    "AccessPoint",
    "ActivationState",
    "ConnectRequest",
    "ConnectResponse",
    "ConnectionSecret",
    "ConnectivityResponse",
    "EapConfig",
    "EnterpriseSecret",
    "HotspotRequest",
    "HotspotResponse",
    "OpenSecret",
    "PassphraseSecret",
    "ScanRequest",
    "ScanResponse",
    "SecurityType",
    "SignalRating",
]
