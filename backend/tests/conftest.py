"""Pytest fixtures and configuration for test suite

This module provides:
1. Signing key fixtures (real P-256 keys generated with cryptography)
2. Factory functions for options and messages with sensible defaults
3. A controllable clock for token renewal tests
4. A mock HTTP/2 client

Factory Functions:
    - make_signing_key_pem(curve) -> str
    - make_options(**overrides) -> APNSOptions
    - make_message(**overrides) -> AlertMessage
"""
import pytest
from unittest.mock import AsyncMock

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apnsprovider.services.push.models import AlertMessage, APNSOptions


# =============================================================================
# Factory Functions for Test Objects
# =============================================================================

def make_signing_key_pem(curve: ec.EllipticCurve = None) -> str:
    """
    Generate a PKCS8 PEM private key, the same shape as an Apple .p8 file.

    Args:
        curve: Elliptic curve, P-256 when None

    Returns:
        PEM text
    """
    private_key = ec.generate_private_key(curve or ec.SECP256R1())
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return pem.decode("ascii")


def make_options(signing_key: str = None, **overrides) -> APNSOptions:
    """
    Factory function to create APNSOptions for testing.

    Example:
        options = make_options(jwt_renew_minutes=20)
    """
    values = {
        "team_id": "ABC123WXYZ",
        "key_id": "DEF456",
        "signing_key": signing_key or make_signing_key_pem(),
        "app_id": "com.example.pushtest",
        "host": "api.sandbox.push.apple.com",
        "jwt_renew_minutes": 45,
    }
    values.update(overrides)
    return APNSOptions(**values)


def make_message(**overrides) -> AlertMessage:
    """Factory function to create an AlertMessage for testing."""
    values = {
        "title": "Notification's title",
        "subtitle": "Subtitle for details",
        "body": "A long body with some stuff in there.",
        "data": {"RandomGuid": "0b7f2f4e-6f7c-4c8e-9a55-3c1f5d0f1c2a"},
    }
    values.update(overrides)
    return AlertMessage(**values)


class FakeClock:
    """Manually advanced time source (Unix seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += minutes * 60 + seconds


# =============================================================================
# Pytest Fixtures
# =============================================================================

@pytest.fixture
def signing_key_pem():
    """P-256 PKCS8 PEM signing key."""
    return make_signing_key_pem()


@pytest.fixture
def apns_options(signing_key_pem):
    """Provider options built around the generated signing key."""
    return make_options(signing_key=signing_key_pem)


@pytest.fixture
def sample_message():
    """Alert message with every field set and one custom data entry."""
    return make_message()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def device_token():
    return "55a83e4" + "c0ffee" * 9 + "94ee29f76"


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.is_closed = False
    return mock_client
