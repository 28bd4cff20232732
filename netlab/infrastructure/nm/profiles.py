"""
Connection profile builders.

A profile is the nested settings mapping NetworkManager stores:
group name -> key -> plain value. These builders are pure; the bus adapter
handles D-Bus typing.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from netlab.core.errors import SecretValidationError
from netlab.domain.models import EnterpriseSecret, OpenSecret, PassphraseSecret

from .bus import ConnectionProfile

CONNECTION = "connection"
WIRELESS = "802-11-wireless"
WIRELESS_SECURITY = "802-11-wireless-security"
IEEE_8021X = "802-1x"
IPV4 = "ipv4"
IPV6 = "ipv6"

EAP_METHODS = ("tls", "peap", "ttls")

# NMSettingWirelessSecurityPmf
PMF_DISABLE = 1


@dataclass(frozen=True)
class HotspotAddressing:
    """Static shared IPv4 addressing for the hotspot; the device is the gateway."""

    address: str = "172.24.1.1"
    prefix: int = 24
    gateway: str = "172.24.1.1"

    def ipv4_settings(self) -> dict[str, Any]:
        return {
            "method": "shared",
            "address-data": [{"address": self.address, "prefix": self.prefix}],
            "gateway": self.gateway,
        }


DEFAULT_HOTSPOT_ADDRESSING = HotspotAddressing()


def cert_path_blob(path: str) -> bytes:
    """NetworkManager path-scheme certificate value: b"file://<abs path>\\0"."""
    return b"file://" + os.path.abspath(path).encode() + b"\x00"


def _open_security(secret: OpenSecret) -> ConnectionProfile:
    if not secret.is_open:
        raise SecretValidationError(
            "secret 'open' must be true; any other network needs a passphrase or EAP config"
        )
    return {WIRELESS_SECURITY: {"key-mgmt": "none"}}


def _passphrase_security(secret: PassphraseSecret) -> ConnectionProfile:
    return {WIRELESS_SECURITY: {"key-mgmt": "wpa-psk", "psk": secret.passphrase}}


def _enterprise_security(secret: EnterpriseSecret) -> ConnectionProfile:
    eap = secret.eap
    dot1x: dict[str, Any] = {
        "eap": list(EAP_METHODS),
        "identity": eap.identity,
        "password": eap.password,
    }
    if eap.client_certificate:
        dot1x["client-cert"] = cert_path_blob(eap.client_certificate)
    if eap.ca_certificate:
        dot1x["ca-cert"] = cert_path_blob(eap.ca_certificate)
    return {WIRELESS_SECURITY: {"key-mgmt": "wpa-eap"}, IEEE_8021X: dot1x}


_SECURITY_BUILDERS: dict[str, Callable[[Any], ConnectionProfile]] = {
    "open": _open_security,
    "passphrase": _passphrase_security,
    "enterprise": _enterprise_security,
}


def security_settings(secret: Any) -> ConnectionProfile:
    """Security groups for a secret variant. Raises SecretValidationError."""
    builder = _SECURITY_BUILDERS.get(getattr(secret, "kind", None))
    if builder is None:
        raise SecretValidationError(f"unsupported secret variant: {secret!r}")
    return builder(secret)


def build_client_profile(ssid: str, secret: Any) -> ConnectionProfile:
    """Infrastructure-mode profile for joining ``ssid``."""
    profile: ConnectionProfile = {
        CONNECTION: {"type": WIRELESS, "id": ssid},
        WIRELESS: {"ssid": ssid.encode(), "mode": "infrastructure"},
    }
    profile.update(security_settings(secret))
    return profile


def build_hotspot_profile(
    ssid: str,
    passphrase: str,
    interface: str | None = None,
    addressing: HotspotAddressing = DEFAULT_HOTSPOT_ADDRESSING,
    band: str = "bg",
) -> ConnectionProfile:
    """
    Access-point profile with WPA-PSK and shared IPv4.

    PMF is disabled for driver compatibility, which lets some drivers fall
    back to TKIP, so the pairwise cipher is pinned to CCMP.
    """
    connection: dict[str, Any] = {
        "type": WIRELESS,
        "id": ssid,
        "autoconnect": False,
        "autoconnect-priority": 0,
    }
    if interface:
        connection["interface-name"] = interface

    return {
        CONNECTION: connection,
        WIRELESS: {
            "ssid": ssid.encode(),
            "mode": "ap",
            "band": band,
            "hidden": False,
        },
        WIRELESS_SECURITY: {
            "key-mgmt": "wpa-psk",
            "psk": passphrase,
            "pmf": PMF_DISABLE,
            "pairwise": ["ccmp"],
        },
        IPV4: addressing.ipv4_settings(),
        IPV6: {"method": "ignore"},
    }


def profile_ssid(profile: ConnectionProfile) -> str | None:
    """SSID of a stored profile, None for non-wireless profiles."""
    raw = profile.get(WIRELESS, {}).get("ssid")
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        raw = bytes(raw)
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)
