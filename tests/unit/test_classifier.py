"""Unit tests for the radio classifier."""

import pytest

from netlab.domain.models import SecurityType, SignalRating
from netlab.infrastructure.wifi.classifier import (
    AP_SEC_GROUP_CCMP,
    AP_SEC_GROUP_TKIP,
    AP_SEC_GROUP_WEP104,
    AP_SEC_KEY_MGMT_802_1X,
    AP_SEC_KEY_MGMT_PSK,
    AP_SEC_PAIR_CCMP,
    AP_SEC_PAIR_TKIP,
    AP_SEC_PAIR_WEP40,
    CHANNEL_PLAN,
    classify_security,
    frequency_to_channel,
    rate_signal,
)


class TestClassifySecurity:
    """Test security flag classification."""

    def test_no_flags_is_open(self):
        assert classify_security(0, 0) == SecurityType.OPEN

    @pytest.mark.parametrize(
        "wpa,rsn",
        [
            (AP_SEC_PAIR_WEP40, 0),
            (0, AP_SEC_GROUP_WEP104),
            (AP_SEC_PAIR_WEP40 | AP_SEC_KEY_MGMT_PSK, 0),
        ],
    )
    def test_wep_bits_win(self, wpa, rsn):
        assert classify_security(wpa, rsn) == SecurityType.WEP

    def test_rsn_eap_with_ccmp(self):
        rsn = AP_SEC_KEY_MGMT_802_1X | AP_SEC_PAIR_CCMP | AP_SEC_GROUP_CCMP
        assert classify_security(0, rsn) == SecurityType.WPA3_EAP

    def test_rsn_psk_with_ccmp(self):
        rsn = AP_SEC_KEY_MGMT_PSK | AP_SEC_PAIR_CCMP | AP_SEC_GROUP_CCMP
        assert classify_security(0, rsn) == SecurityType.WPA3_PSK

    def test_rsn_eap_without_ccmp(self):
        rsn = AP_SEC_KEY_MGMT_802_1X | AP_SEC_PAIR_TKIP
        assert classify_security(0, rsn) == SecurityType.WPA2_EAP

    def test_rsn_psk_without_ccmp(self):
        rsn = AP_SEC_KEY_MGMT_PSK | AP_SEC_PAIR_TKIP | AP_SEC_GROUP_TKIP
        assert classify_security(0, rsn) == SecurityType.WPA2_PSK

    def test_eap_outranks_psk(self):
        rsn = AP_SEC_KEY_MGMT_802_1X | AP_SEC_KEY_MGMT_PSK | AP_SEC_PAIR_CCMP
        assert classify_security(0, rsn) == SecurityType.WPA3_EAP

    def test_wpa1_only_consulted_without_rsn_match(self):
        assert classify_security(AP_SEC_KEY_MGMT_PSK | AP_SEC_PAIR_TKIP, 0) == SecurityType.WPA_PSK
        assert classify_security(AP_SEC_KEY_MGMT_802_1X, 0) == SecurityType.WPA_EAP
        # RSN result takes precedence over the WPA mask
        assert (
            classify_security(AP_SEC_KEY_MGMT_802_1X, AP_SEC_KEY_MGMT_PSK)
            == SecurityType.WPA2_PSK
        )

    def test_ccmp_in_wpa_mask_is_not_wpa3(self):
        assert classify_security(AP_SEC_KEY_MGMT_802_1X | AP_SEC_PAIR_CCMP, 0) == SecurityType.WPA_EAP
        assert classify_security(AP_SEC_KEY_MGMT_PSK | AP_SEC_PAIR_CCMP, 0) == SecurityType.WPA_PSK

    def test_cipher_bits_without_key_mgmt_is_unknown(self):
        assert classify_security(AP_SEC_PAIR_TKIP, AP_SEC_PAIR_CCMP) == SecurityType.UNKNOWN


class TestFrequencyToChannel:
    """Test frequency to channel mapping."""

    @pytest.mark.parametrize(
        "freq,channel",
        [
            (2412, 1),
            (2437, 6),
            (2462, 11),
            (2472, 13),
            (2484, 14),
            (5180, 36),
            (5500, 100),
            (5745, 149),
            (5825, 165),
            (5935, 2),
            (5955, 1),
            (6115, 33),
        ],
    )
    def test_known_centres(self, freq, channel):
        assert frequency_to_channel(freq) == channel

    @pytest.mark.parametrize("freq", [0, 1000, 2400, 2495, 4900, 7200])
    def test_unknown_is_zero(self, freq):
        assert frequency_to_channel(freq) == 0

    def test_plan_ranges_do_not_overlap(self):
        ranges = sorted((low, high) for low, high, _ in CHANNEL_PLAN)
        for (_, prev_high), (low, _) in zip(ranges, ranges[1:]):
            assert prev_high <= low

    def test_every_frequency_maps_deterministically(self):
        for freq in range(2400, 7200):
            matches = [ch for low, high, ch in CHANNEL_PLAN if low <= freq < high]
            assert len(matches) <= 1
            assert frequency_to_channel(freq) == (matches[0] if matches else 0)


class TestRateSignal:
    """Test RSSI rating thresholds."""

    @pytest.mark.parametrize(
        "rssi,rating",
        [
            (-30, SignalRating.EXCELLENT),
            (-50, SignalRating.EXCELLENT),
            (-51, SignalRating.GOOD),
            (-60, SignalRating.GOOD),
            (-61, SignalRating.FAIR),
            (-70, SignalRating.FAIR),
            (-71, SignalRating.POOR),
            (-80, SignalRating.POOR),
            (-81, SignalRating.NONE),
            (-100, SignalRating.NONE),
        ],
    )
    def test_thresholds(self, rssi, rating):
        assert rate_signal(rssi) == rating

    def test_rating_is_monotonic(self):
        order = [SignalRating.NONE, SignalRating.POOR, SignalRating.FAIR, SignalRating.GOOD, SignalRating.EXCELLENT]
        ranks = [order.index(rate_signal(rssi)) for rssi in range(-110, 0)]
        assert ranks == sorted(ranks)
