"""netlab core - error taxonomy shared by workflows, API and CLI."""

from .errors import (
    BusCallError,
    ConnectionFailedError,
    ConnectionTimeoutError,
    ConnectivityError,
    CorrelationTimeoutError,
    DeviceNotFoundError,
    HotspotActivationTimeoutError,
    NetlabError,
    RequestValidationError,
    ScanDurationError,
    SecretValidationError,
)

__all__ = [
    "BusCallError",
    "ConnectionFailedError",
    "ConnectionTimeoutError",
    "ConnectivityError",
    "CorrelationTimeoutError",
    "DeviceNotFoundError",
    "HotspotActivationTimeoutError",
    "NetlabError",
    "RequestValidationError",
    "ScanDurationError",
    "SecretValidationError",
]
