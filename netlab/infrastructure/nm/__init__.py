"""NetworkManager infrastructure - bus abstraction, profiles and signal correlation.

``SdbusNetworkManagerBus`` is imported from ``.sdbus_bus`` directly so the
rest of the package works on hosts without libsystemd.
"""

from .bus import (
    DEVICE_TYPE_WIFI,
    ConnectionProfile,
    MockNetworkManagerBus,
    NetworkManagerBus,
    RawAccessPoint,
    SignalSubscription,
    StateChangeSignal,
)
from .correlator import CorrelationOutcome, SignalCorrelator
from .profiles import (
    DEFAULT_HOTSPOT_ADDRESSING,
    HotspotAddressing,
    build_client_profile,
    build_hotspot_profile,
    profile_ssid,
)
from .variants import decode_profile, encode_profile, from_variant, to_variant

__all__ = [
    # Bus
    "DEVICE_TYPE_WIFI",
    "ConnectionProfile",
    "MockNetworkManagerBus",
    "NetworkManagerBus",
    "RawAccessPoint",
    "SignalSubscription",
    "StateChangeSignal",
    # Correlation
    "CorrelationOutcome",
    "SignalCorrelator",
    # Profiles
    "DEFAULT_HOTSPOT_ADDRESSING",
    "HotspotAddressing",
    "build_client_profile",
    "build_hotspot_profile",
    "profile_ssid",
    # Variants
    "decode_profile",
    "encode_profile",
    "from_variant",
    "to_variant",
]
