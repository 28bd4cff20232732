"""
Connection Management Infrastructure.

Client connection and hotspot workflows driven over NetworkManager, plus the
best-effort helpers they share.
"""

from .best_effort import BestEffortReport, deactivate_best_effort
from .connection import ClientConnectionWorkflow, ConnectionResult
from .hotspot import HotspotResult, HotspotWorkflow
from .replace import remove_profiles_for_ssid

__all__ = [
    "BestEffortReport",
    "ClientConnectionWorkflow",
    "ConnectionResult",
    "HotspotResult",
    "HotspotWorkflow",
    "deactivate_best_effort",
    "remove_profiles_for_ssid",
]
