"""
APNS push notification provider.

This package contains:
- Signing key import for the .p8 auth key
- Provider token (JWT) generation and renewal
- Alert payload encoding with the APNS size limit
- APNSProvider - HTTP/2 request/response handling
"""

from apnsprovider.services.push.apns_provider import (
    APNSProvider,
    ProviderBuildResult,
    build_provider,
)
from apnsprovider.services.push.exceptions import (
    APNSError,
    PayloadTooLargeError,
    RenewalIntervalError,
    ReservedPayloadKeyError,
    SigningKeyImportError,
)
from apnsprovider.services.push.jwt_generator import (
    APNSJWTGenerator,
    CachedToken,
    TokenState,
)
from apnsprovider.services.push.models import (
    AlertMessage,
    APNSOptions,
    DeliveryStatus,
    SendResult,
)
from apnsprovider.services.push.payload import (
    build_alert_payload,
    decode_alert_payload,
    encode_alert_payload,
)
from apnsprovider.services.push.signing import load_signing_key

__all__ = [
    # Provider
    "APNSProvider",
    "ProviderBuildResult",
    "build_provider",
    # Token
    "APNSJWTGenerator",
    "CachedToken",
    "TokenState",
    "load_signing_key",
    # Payload
    "build_alert_payload",
    "decode_alert_payload",
    "encode_alert_payload",
    # Models
    "AlertMessage",
    "APNSOptions",
    "DeliveryStatus",
    "SendResult",
    # Errors
    "APNSError",
    "PayloadTooLargeError",
    "RenewalIntervalError",
    "ReservedPayloadKeyError",
    "SigningKeyImportError",
]
