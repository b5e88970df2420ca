"""
Alert payload encoding.

The payload is built as a dictionary and serialized with json, so
caller supplied text is escaped by the encoder rather than spliced
into a template.
"""

import json
import logging
from typing import Any, Dict, Union

from apnsprovider.services.push.constants import (
    DEFAULT_SOUND,
    PAYLOAD_MAX_SIZE,
    PAYLOAD_RESERVED_KEY,
)
from apnsprovider.services.push.exceptions import (
    PayloadTooLargeError,
    ReservedPayloadKeyError,
)
from apnsprovider.services.push.models import AlertMessage

logger = logging.getLogger(__name__)

ALERT_FIELDS = ("title", "subtitle", "body")


def build_alert_payload(message: AlertMessage) -> Dict[str, Any]:
    """
    Convert an alert message to the APNS payload dictionary.

    Absent title/subtitle/body are left out of aps.alert. Custom data
    goes at the top level, next to "aps".

    Raises:
        ReservedPayloadKeyError: custom data contains the "aps" key
    """
    if PAYLOAD_RESERVED_KEY in message.data:
        raise ReservedPayloadKeyError(PAYLOAD_RESERVED_KEY)

    alert = {}
    for name in ALERT_FIELDS:
        value = getattr(message, name)
        if value is not None:
            alert[name] = value

    payload: Dict[str, Any] = {
        "aps": {
            "alert": alert,
            "sound": DEFAULT_SOUND,
        }
    }
    payload.update(message.data)
    return payload


def encode_alert_payload(message: AlertMessage, max_size: int = PAYLOAD_MAX_SIZE) -> bytes:
    """
    Serialize an alert message into the request body.

    Args:
        message: Alert content and custom data
        max_size: Maximum size in bytes (4096, or 5120 for VoIP)

    Returns:
        UTF-8 encoded JSON document

    Raises:
        ReservedPayloadKeyError: custom data contains the "aps" key
        PayloadTooLargeError: encoded document is larger than max_size
    """
    document = json.dumps(
        build_alert_payload(message),
        ensure_ascii=False,
        separators=(",", ":"),
    )
    body = document.encode("utf-8")

    # APNS enforces the limit on bytes, not characters
    if len(body) > max_size:
        raise PayloadTooLargeError(len(body), max_size)

    logger.debug("Generated JSON payload: %s", document, extra={"size": len(body)})
    return body


def decode_alert_payload(raw: Union[bytes, str]) -> AlertMessage:
    """
    Parse a document produced by encode_alert_payload back into a message.

    Raises:
        ValueError: raw is not a JSON object with an "aps" dictionary
    """
    document = json.loads(raw)
    if not isinstance(document, dict) or not isinstance(document.get("aps"), dict):
        raise ValueError("Not an APNS payload")

    alert = document["aps"].get("alert") or {}
    if isinstance(alert, str):
        alert = {"body": alert}

    data = {key: value for key, value in document.items() if key != PAYLOAD_RESERVED_KEY}
    return AlertMessage(
        title=alert.get("title"),
        subtitle=alert.get("subtitle"),
        body=alert.get("body"),
        data=data,
    )
