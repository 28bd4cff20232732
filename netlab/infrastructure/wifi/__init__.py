"""WiFi infrastructure - Radio classification and scan orchestration."""

from .classifier import (
    CHANNEL_PLAN,
    classify_security,
    frequency_to_channel,
    rate_signal,
)
from .scanner import ScanConfig, WiFiScanner, classify_access_point

__all__ = [
    # Scanner
    "WiFiScanner",
    "ScanConfig",
    "classify_access_point",
    # Classifier
    "CHANNEL_PLAN",
    "classify_security",
    "frequency_to_channel",
    "rate_signal",
]
