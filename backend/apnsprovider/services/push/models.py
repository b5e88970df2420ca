"""
Pydantic models for the APNS provider.

APNSOptions holds the provider configuration, AlertMessage is the
caller's notification content and SendResult reports one send attempt.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apnsprovider.services.push.constants import (
    APNS_PRODUCTION_HOST,
    APNS_SANDBOX_HOST,
    DEFAULT_TIMEOUT_SECONDS,
    JWT_RENEW_DEFAULT_MINUTES,
    PAYLOAD_MAX_SIZE,
)

if TYPE_CHECKING:
    from apnsprovider.core.config import Settings


class DeliveryStatus(str, Enum):
    """Outcome of a single send."""

    SUCCESS = "success"
    REJECTED = "rejected"  # APNS answered with status >= 400
    MISSING_ID = "missing_id"  # Accepted status but no parsable apns-id header


@dataclass
class SendResult:
    """Result of a push notification send attempt."""

    device_token: str
    status: DeliveryStatus
    request_id: uuid.UUID  # apns-id we sent
    apns_id: Optional[uuid.UUID] = None  # apns-id APNS returned
    status_code: Optional[int] = None
    reason: Optional[str] = None  # APNS JSON error "reason"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS and self.apns_id is not None

    @property
    def error(self) -> Optional[str]:
        """Human readable failure description, None on success."""
        if self.success:
            return None
        if self.reason:
            return f"APNS error: {self.reason}"
        if self.status == DeliveryStatus.REJECTED:
            return f"APNS error: status {self.status_code}"
        return "apns-id can't be extracted from response headers"


class APNSOptions(BaseModel):
    """Configuration for the APNS provider.

    Attributes:
        team_id: Team identifier from the Apple developer account
        key_id: Identifier of the .p8 signing key
        signing_key: PEM text of the .p8 key (PKCS8, P-256)
        app_id: App bundle identifier, sent as apns-topic
        host: APNS host name
        jwt_renew_minutes: Token renewal interval, 20-59 minutes
        max_payload_bytes: Ceiling on the encoded JSON payload
        timeout_seconds: Request timeout for the default HTTP/2 client
    """

    model_config = ConfigDict(frozen=True)

    team_id: str = Field(..., min_length=1, description="Apple developer team ID")
    key_id: str = Field(..., min_length=1, description="Signing key ID")
    signing_key: str = Field(..., min_length=1, repr=False, description="PEM encoded PKCS8 private key")
    app_id: str = Field(..., min_length=1, description="App bundle identifier")
    host: str = Field(default=APNS_SANDBOX_HOST, description="APNS host")
    # Range is enforced by the JWT generator so the error type stays RenewalIntervalError
    jwt_renew_minutes: int = Field(default=JWT_RENEW_DEFAULT_MINUTES, description="JWT renewal interval")
    max_payload_bytes: int = Field(default=PAYLOAD_MAX_SIZE, gt=0, description="Payload byte ceiling")
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="HTTP timeout")

    @field_validator("key_id", "team_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Validate that identifiers are alphanumeric."""
        v = v.strip()
        if not v.isalnum():
            raise ValueError("Must be alphanumeric")
        return v.upper()

    @field_validator("app_id", "host")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be blank")
        return v

    @classmethod
    def from_settings(cls, settings: "Settings") -> "APNSOptions":
        """Build options from environment settings.

        Raises:
            ValueError: A required APNS setting is missing
        """
        signing_key = settings.read_signing_key()
        missing = [
            name for name, value in (
                ("APNS_TEAM_ID", settings.APNS_TEAM_ID),
                ("APNS_KEY_ID", settings.APNS_KEY_ID),
                ("APNS_APP_ID", settings.APNS_APP_ID),
                ("APNS_SIGNING_KEY or APNS_KEY_FILE", signing_key),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"APNS is not configured, missing: {', '.join(missing)}")

        host = settings.APNS_HOST
        if not host:
            host = APNS_SANDBOX_HOST if settings.APNS_USE_SANDBOX else APNS_PRODUCTION_HOST

        return cls(
            team_id=settings.APNS_TEAM_ID,
            key_id=settings.APNS_KEY_ID,
            signing_key=signing_key,
            app_id=settings.APNS_APP_ID,
            host=host,
            jwt_renew_minutes=settings.APNS_JWT_RENEW_MINUTES,
            max_payload_bytes=settings.APNS_MAX_PAYLOAD_BYTES,
            timeout_seconds=settings.APNS_TIMEOUT_SECONDS,
        )


class AlertMessage(BaseModel):
    """Alert notification content.

    Any of title, subtitle and body may be left out; absent fields are
    omitted from the aps.alert dictionary. Custom data is merged at the
    top level of the payload next to "aps".
    """

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = Field(None, description="Alert title")
    subtitle: Optional[str] = Field(None, description="Alert subtitle")
    body: Optional[str] = Field(None, description="Alert body text")
    data: Dict[str, str] = Field(default_factory=dict, description="Custom payload data")
