"""
netlab error taxonomy.

Every workflow returns exactly one terminal outcome: a result or one of
these exceptions. The HTTP layer maps each class to a status code through
``http_status``; the CLI prints the message and exits non-zero.
"""

from __future__ import annotations


class NetlabError(Exception):
    """Base class for all netlab errors."""

    http_status: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)

    @property
    def detail(self) -> str:
        return str(self)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.__class__.__name__, "detail": self.detail}


class RequestValidationError(NetlabError):
    """Malformed request rejected before any bus interaction."""

    http_status = 400


class ScanDurationError(RequestValidationError):
    """Scan duration exceeds the configured cap."""


class SecretValidationError(RequestValidationError):
    """Connection secret variant is malformed."""


class DeviceNotFoundError(NetlabError):
    """No matching wireless device."""

    http_status = 404


class BusCallError(NetlabError):
    """A NetworkManager method call or property read failed."""

    http_status = 502

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        self.operation = operation
        super().__init__(f"{operation}: {cause}")


class ConnectionFailedError(NetlabError):
    """Connection was deactivated before it became active."""

    http_status = 409


class CorrelationTimeoutError(NetlabError):
    """No terminal state-change signal arrived before the deadline."""

    http_status = 504

    def __init__(self, message: str = "", deadline: float = 0.0) -> None:
        self.deadline = deadline
        super().__init__(message)


class ConnectionTimeoutError(CorrelationTimeoutError):
    """connection timeout"""


class HotspotActivationTimeoutError(CorrelationTimeoutError):
    """hotspot activation timeout"""


class ConnectivityError(NetlabError):
    """Internet connectivity probe failed."""

    http_status = 502
