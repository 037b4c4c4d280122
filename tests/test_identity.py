"""Unit tests for client identity resolution."""

import pytest
from starlette.datastructures import Headers

from admission.core.identity import UNKNOWN_IDENTITY, resolve_identity


def test_forwarded_for_uses_first_hop() -> None:
    assert resolve_identity({"x-forwarded-for": "1.2.3.4, 5.6.7.8"}) == "1.2.3.4"


def test_forwarded_for_single_value_is_trimmed() -> None:
    assert resolve_identity({"x-forwarded-for": "  10.0.0.1  "}) == "10.0.0.1"


def test_real_ip_used_when_forwarded_for_absent() -> None:
    assert resolve_identity({"x-real-ip": "9.9.9.9"}) == "9.9.9.9"


def test_client_ip_is_last_header_consulted() -> None:
    assert resolve_identity({"x-client-ip": "8.8.4.4"}) == "8.8.4.4"


def test_precedence_first_match_wins() -> None:
    headers = {
        "x-client-ip": "3.3.3.3",
        "x-real-ip": "2.2.2.2",
        "x-forwarded-for": "1.1.1.1, 4.4.4.4",
    }
    assert resolve_identity(headers) == "1.1.1.1"

    del headers["x-forwarded-for"]
    assert resolve_identity(headers) == "2.2.2.2"


def test_no_relevant_headers_falls_back_to_unknown() -> None:
    assert resolve_identity({"user-agent": "pytest"}) == UNKNOWN_IDENTITY
    assert resolve_identity({}) == "unknown"


def test_values_are_not_validated() -> None:
    assert resolve_identity({"x-real-ip": "not-an-ip"}) == "not-an-ip"


def test_blank_first_hop_falls_through() -> None:
    headers = {"x-forwarded-for": " , 5.6.7.8", "x-real-ip": "9.9.9.9"}
    assert resolve_identity(headers) == "9.9.9.9"


@pytest.mark.parametrize(
    "headers",
    [
        {"X-Forwarded-For": "1.2.3.4"},
        Headers({"X-Forwarded-For": "1.2.3.4"}),
    ],
)
def test_header_names_are_case_insensitive(headers) -> None:
    assert resolve_identity(headers) == "1.2.3.4"
