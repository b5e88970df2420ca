"""
Signing key import for APNS token authentication.

The .p8 file Apple hands out is a PKCS8 EC private key on P-256
distributed in PEM format.
"""

import logging
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apnsprovider.services.push.constants import JWT_CURVE_NAME
from apnsprovider.services.push.exceptions import SigningKeyImportError

logger = logging.getLogger(__name__)


def load_signing_key(pem: Union[str, bytes]) -> ec.EllipticCurvePrivateKey:
    """
    Import the ES256 signing key from PEM text.

    Args:
        pem: PEM encoded PKCS8 private key (contents of AuthKey_XXXXXXXXXX.p8)

    Returns:
        EC private key ready to sign with ECDSA/SHA-256

    Raises:
        SigningKeyImportError: PEM is malformed, not an EC private key,
            or not on curve P-256
    """
    key_data = pem.encode("utf-8") if isinstance(pem, str) else pem
    key_data = key_data.strip()
    if not key_data:
        raise SigningKeyImportError("APNS signing key is empty")

    try:
        private_key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError) as e:
        raise SigningKeyImportError(
            f"Can't load token signing key, required to send requests to APNS: {e}"
        ) from e
    except UnsupportedAlgorithm as e:
        raise SigningKeyImportError(f"Unsupported APNS signing key: {e}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise SigningKeyImportError("APNS key must be an EC private key (ES256)")

    if private_key.curve.name != JWT_CURVE_NAME:
        raise SigningKeyImportError(
            f"APNS key must use curve P-256, got {private_key.curve.name}"
        )

    logger.debug("Loaded APNS signing key", extra={"curve": private_key.curve.name})
    return private_key
