"""Connectivity infrastructure - HTTP reachability probe."""

from .checker import DEFAULT_PROBE_URL, ConnectivityChecker

__all__ = [
    "ConnectivityChecker",
    "DEFAULT_PROBE_URL",
]
