"""
Radio Classifier
================

Pure functions turning raw NetworkManager access-point metadata into
structured values:

- security flags (WpaFlags / RsnFlags) -> SecurityType
- frequency (MHz) -> channel number
- RSSI (dBm) -> SignalRating
"""

from __future__ import annotations

from netlab.domain.models import SecurityType, SignalRating

# NM80211ApSecurityFlags
AP_SEC_NONE = 0x0000
AP_SEC_PAIR_WEP40 = 0x0001
AP_SEC_PAIR_WEP104 = 0x0002
AP_SEC_PAIR_TKIP = 0x0004
AP_SEC_PAIR_CCMP = 0x0008
AP_SEC_GROUP_WEP40 = 0x0010
AP_SEC_GROUP_WEP104 = 0x0020
AP_SEC_GROUP_TKIP = 0x0040
AP_SEC_GROUP_CCMP = 0x0080
AP_SEC_KEY_MGMT_PSK = 0x0100
AP_SEC_KEY_MGMT_802_1X = 0x0200

_WEP_BITS = AP_SEC_PAIR_WEP40 | AP_SEC_PAIR_WEP104 | AP_SEC_GROUP_WEP40 | AP_SEC_GROUP_WEP104
_CCMP_BITS = AP_SEC_PAIR_CCMP | AP_SEC_GROUP_CCMP


def _channel_plan() -> tuple[tuple[int, int, int], ...]:
    """Build the (low, high, channel) table, half-open [low, high)."""
    plan: list[tuple[int, int, int]] = []

    # 2.4 GHz: 5 MHz spacing, one slot per channel centre
    for ch in range(1, 14):
        centre = 2407 + 5 * ch
        plan.append((centre - 2, centre + 3, ch))
    plan.append((2482, 2487, 14))

    # 5 GHz: 20 MHz sub-bands
    plan.append((5150, 5170, 32))
    for ch in range(36, 148, 4):
        centre = 5000 + 5 * ch
        plan.append((centre - 10, centre + 10, ch))
    for ch in range(149, 178, 4):
        centre = 5000 + 5 * ch
        plan.append((centre - 10, centre + 10, ch))

    # 6 GHz
    plan.append((5925, 5945, 2))
    for ch in range(1, 234, 4):
        centre = 5950 + 5 * ch
        plan.append((centre - 10, centre + 10, ch))

    return tuple(plan)


CHANNEL_PLAN: tuple[tuple[int, int, int], ...] = _channel_plan()


def classify_security(wpa_flags: int, rsn_flags: int) -> SecurityType:
    """
    Infer the security type from WPA and RSN flag masks.

    Stronger and more specific categories are tested first; WPA (v1) bits
    are only consulted when the RSN mask yielded nothing.
    """
    if wpa_flags == AP_SEC_NONE and rsn_flags == AP_SEC_NONE:
        return SecurityType.OPEN

    if (wpa_flags | rsn_flags) & _WEP_BITS:
        return SecurityType.WEP

    rsn_ccmp = bool(rsn_flags & _CCMP_BITS)
    if rsn_flags & AP_SEC_KEY_MGMT_802_1X and rsn_ccmp:
        return SecurityType.WPA3_EAP
    if rsn_flags & AP_SEC_KEY_MGMT_PSK and rsn_ccmp:
        return SecurityType.WPA3_PSK
    if rsn_flags & AP_SEC_KEY_MGMT_802_1X:
        return SecurityType.WPA2_EAP
    if rsn_flags & AP_SEC_KEY_MGMT_PSK:
        return SecurityType.WPA2_PSK

    if wpa_flags & AP_SEC_KEY_MGMT_802_1X:
        return SecurityType.WPA_EAP
    if wpa_flags & AP_SEC_KEY_MGMT_PSK:
        return SecurityType.WPA_PSK

    return SecurityType.UNKNOWN


def frequency_to_channel(freq: int) -> int:
    """Convert frequency (MHz) to channel number, 0 if unknown."""
    for low, high, channel in CHANNEL_PLAN:
        if low <= freq < high:
            return channel
    return 0


def rate_signal(rssi: int) -> SignalRating:
    """Rate RSSI (dBm); thresholds are inclusive."""
    if rssi >= -50:
        return SignalRating.EXCELLENT
    if rssi >= -60:
        return SignalRating.GOOD
    if rssi >= -70:
        return SignalRating.FAIR
    if rssi >= -80:
        return SignalRating.POOR
    return SignalRating.NONE
