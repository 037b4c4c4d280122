"""Client identity resolution from proxy headers."""

from __future__ import annotations

from typing import Mapping

UNKNOWN_IDENTITY = "unknown"

# Checked in order, first non-empty value wins
_FORWARDED_FOR = "x-forwarded-for"
_SINGLE_VALUE_HEADERS = ("x-real-ip", "x-client-ip")


def _lookup(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    # Plain dicts are case-sensitive; Starlette's Headers already are not
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


def resolve_identity(headers: Mapping[str, str]) -> str:
    """Return the client identity for a request.

    ``X-Forwarded-For`` carries the proxy chain, so only its first hop (the
    original client) is used. ``X-Real-IP`` and ``X-Client-IP`` are taken
    verbatim. No syntax validation or reverse lookup is performed.

    Args:
        headers: Request headers.

    Returns:
        Non-empty identity string, ``"unknown"`` when no header is present.
    """

    forwarded = _lookup(headers, _FORWARDED_FOR)
    if forwarded:
        first_hop = forwarded.split(",", 1)[0].strip()
        if first_hop:
            return first_hop

    for name in _SINGLE_VALUE_HEADERS:
        value = _lookup(headers, name)
        if value:
            return value

    return UNKNOWN_IDENTITY
