"""
D-Bus variant conversion for NetworkManager settings.

Profiles travel through the code as plain ``dict[str, dict[str, Any]]``.
sdbus expects every setting as a ``(signature, value)`` tuple, so the
adapter encodes on the way out and decodes on the way in.
"""

from __future__ import annotations

from typing import Any

from .bus import ConnectionProfile

# Keys whose integer values are unsigned on the wire; all others are int32.
_UNSIGNED_KEYS = frozenset({"prefix", "channel", "mtu", "metric"})


def to_variant(key: str, value: Any) -> tuple[str, Any]:
    """Wrap a plain settings value in an sdbus ``(signature, value)`` tuple."""
    if isinstance(value, bool):
        return ("b", value)
    if isinstance(value, int):
        return ("u" if key in _UNSIGNED_KEYS else "i", value)
    if isinstance(value, str):
        return ("s", value)
    if isinstance(value, (bytes, bytearray)):
        return ("ay", bytes(value))
    if isinstance(value, dict):
        return ("a{sv}", {k: to_variant(k, v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, str) for v in value):
            return ("as", list(value))
        if all(isinstance(v, dict) for v in value):
            return ("aa{sv}", [{k: to_variant(k, x) for k, x in v.items()} for v in value])
    raise TypeError(f"no D-Bus signature for setting {key!r}: {value!r}")


def from_variant(value: Any) -> Any:
    """Unwrap nested sdbus variant tuples into plain Python values."""
    if isinstance(value, tuple) and len(value) == 2 and isinstance(value[0], str):
        return from_variant(value[1])
    if isinstance(value, dict):
        return {k: from_variant(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_variant(v) for v in value]
    return value


def encode_profile(profile: ConnectionProfile) -> dict[str, dict[str, tuple[str, Any]]]:
    return {
        group: {key: to_variant(key, value) for key, value in settings.items()}
        for group, settings in profile.items()
    }


def decode_profile(raw: dict[str, dict[str, Any]]) -> ConnectionProfile:
    return {group: from_variant(settings) for group, settings in raw.items()}

