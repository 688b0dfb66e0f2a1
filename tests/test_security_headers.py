"""
tests/test_security_headers.py — Tests for security headers on responses

Validates that the request_id_middleware in main.py sets the OWASP
recommended headers on every response, errors included.

Called by: pytest
Depends on: bidtracker.main (request_id_middleware)
"""

import pytest

from bidtracker.main import SECURITY_HEADERS


@pytest.mark.parametrize("header,value", sorted(SECURITY_HEADERS.items()))
def test_header_on_health(client, header, value):
    assert client.get("/health").headers.get(header) == value


def test_x_frame_options_deny(client):
    assert client.get("/health").headers.get("X-Frame-Options") == "DENY"


def test_headers_on_error_responses(anon_client):
    resp = anon_client.get("/api/bids")
    assert resp.status_code == 401
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    assert "X-Request-ID" in resp.headers


def test_headers_on_api_responses(client, test_bid):
    resp = client.get(f"/api/bids/{test_bid.id}")
    assert resp.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
