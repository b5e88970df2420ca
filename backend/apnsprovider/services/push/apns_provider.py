"""
APNS (Apple Push Notification Service) Provider.

Sends alert notifications over HTTP/2 using token-based authentication.

Features:
- HTTP/2 connection with persistent connection pooling (or an injected client)
- Token-based authentication (ES256 JWT signed with the .p8 key)
- Payload size enforcement before anything goes on the wire
- apns-id extraction and rejection reason parsing

There is no retry logic: each send is a single attempt and the caller
decides what to do with a failed SendResult.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Union

import httpx

from apnsprovider.core.logging_config import (
    clear_notification_id,
    redact_device_token,
    sanitize_log_value,
    set_notification_id,
)
from apnsprovider.services.push.constants import (
    APNS_CONTENT_TYPE,
    APNS_ERROR_CODES,
    APNS_EXPIRATION_HEADER,
    APNS_EXPIRATION_IMMEDIATE,
    APNS_ID_HEADER,
    APNS_PORT,
    APNS_PUSH_TYPE_ALERT,
    APNS_PUSH_TYPE_HEADER,
    APNS_REASON_EXPIRED_TOKEN,
    APNS_TOPIC_HEADER,
    APNS_URL_TEMPLATE,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
)
from apnsprovider.services.push.exceptions import (
    RenewalIntervalError,
    SigningKeyImportError,
)
from apnsprovider.services.push.jwt_generator import APNSJWTGenerator, check_renew_minutes
from apnsprovider.services.push.models import (
    AlertMessage,
    APNSOptions,
    DeliveryStatus,
    SendResult,
)
from apnsprovider.services.push.payload import encode_alert_payload
from apnsprovider.services.push.signing import load_signing_key

logger = logging.getLogger(__name__)


class APNSProvider:
    """
    APNS provider for sending alert notifications to Apple devices.

    Usage:
        options = APNSOptions(
            team_id="ABC123WXYZ",
            key_id="DEF456GHIJ",
            signing_key=Path("AuthKey_DEF456GHIJ.p8").read_text(),
            app_id="com.example.app",
        )
        async with APNSProvider(options) as provider:
            result = await provider.send_alert(
                AlertMessage(title="Hello", body="World"), device_token
            )

    Attributes:
        options: APNS configuration
        _client: httpx AsyncClient with HTTP/2 enabled
        _jwt: Provider token generator, sole owner of the cached token
    """

    def __init__(
        self,
        options: APNSOptions,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize APNS provider.

        Args:
            options: APNS configuration with signing key details
            client: Optional HTTP/2 client to send through; the provider
                creates and owns one when not given
            clock: Time source for token renewal

        Raises:
            RenewalIntervalError: jwt_renew_minutes outside 20-59
            SigningKeyImportError: signing key can't be imported
        """
        self.options = options

        check_renew_minutes(options.jwt_renew_minutes)
        signing_key = load_signing_key(options.signing_key)
        self._jwt = APNSJWTGenerator(
            signing_key,
            renew_minutes=options.jwt_renew_minutes,
            clock=clock,
        )

        self._client = client
        self._owns_client = client is None
        self._host = options.host

        logger.info(
            "APNS provider initialized",
            extra={
                "host": self._host,
                "app_id": options.app_id,
                "renew_minutes": options.jwt_renew_minutes,
                "max_payload_bytes": options.max_payload_bytes,
            }
        )

    @property
    def token_generator(self) -> APNSJWTGenerator:
        return self._jwt

    def get_token(self) -> str:
        """Current provider token for the configured team and key."""
        return self._jwt.get_token(self.options.team_id, self.options.key_id)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP/2 client with connection pooling."""
        if self._client is None or (self._owns_client and self._client.is_closed):
            self._client = httpx.AsyncClient(
                http2=True,
                timeout=httpx.Timeout(self.options.timeout_seconds, connect=DEFAULT_CONNECT_TIMEOUT_SECONDS),
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
            self._owns_client = True
        return self._client

    def device_url(self, device_token: str) -> str:
        """Request URI for a device token on the configured host."""
        return APNS_URL_TEMPLATE.format(host=self._host, port=APNS_PORT, device_token=device_token)

    def _build_headers(self, request_id: uuid.UUID, provider_token: str) -> dict:
        """Build request headers for an alert push."""
        return {
            "authorization": f"bearer {provider_token}",
            APNS_PUSH_TYPE_HEADER: APNS_PUSH_TYPE_ALERT,
            APNS_ID_HEADER: str(request_id).lower(),
            APNS_TOPIC_HEADER: self.options.app_id,
            APNS_EXPIRATION_HEADER: APNS_EXPIRATION_IMMEDIATE,
            "content-type": APNS_CONTENT_TYPE,
        }

    async def send_alert(self, message: AlertMessage, device_token: str) -> SendResult:
        """
        Send an alert notification to a single device.

        The payload is encoded before any network activity, so size and
        reserved key errors never reach APNS.

        Args:
            message: Alert content and custom data
            device_token: APNS device token (hex string)

        Returns:
            SendResult; apns_id is None when the response carries no
            parsable apns-id header, whatever the status code

        Raises:
            ValueError: device_token is empty
            PayloadTooLargeError: encoded payload over max_payload_bytes
            ReservedPayloadKeyError: custom data uses the "aps" key
            httpx.HTTPError: transport failure
        """
        token = device_token.strip()
        if not token:
            raise ValueError("Device token must not be empty")

        body = encode_alert_payload(message, max_size=self.options.max_payload_bytes)

        # Fresh per request; independent of the apns-id APNS answers with
        request_id = uuid.uuid4()
        context_token = set_notification_id(str(request_id))
        try:
            # Remember which token generation this request carries
            cached = self._jwt.get_cached_token(self.options.team_id, self.options.key_id)
            headers = self._build_headers(request_id, cached.token)
            client = await self._get_client()
            response = await client.post(
                self.device_url(token),
                content=body,
                headers=headers,
            )
            self._log_response(response)
            return self._parse_response(response, token, request_id, cached.epoch)
        finally:
            clear_notification_id(context_token)

    def _log_response(self, response: httpx.Response) -> None:
        http_version = getattr(response, "http_version", None)
        if isinstance(http_version, str) and http_version != "HTTP/2":
            logger.warning(
                "APNS response was not served over HTTP/2",
                extra={"http_version": http_version}
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "APNS response",
                extra={
                    "status_code": response.status_code,
                    "headers": dict(response.headers),
                    "body": sanitize_log_value(response.content.decode("utf-8", errors="replace")),
                }
            )

    def _parse_response(
        self,
        response: httpx.Response,
        device_token: str,
        request_id: uuid.UUID,
        token_epoch: Optional[int] = None,
    ) -> SendResult:
        status_code = response.status_code
        apns_id = self._extract_apns_id(response)

        if status_code >= 400:
            reason = self._extract_reason(response)

            if status_code == 403 and reason == APNS_REASON_EXPIRED_TOKEN:
                # Token aged out server side; sign a new one on the next send
                self._jwt.invalidate(token_epoch)

            logger.error(
                "APNS rejected notification",
                extra={
                    "device_token": redact_device_token(device_token),
                    "status_code": status_code,
                    "reason": reason,
                    "description": APNS_ERROR_CODES.get(reason),
                }
            )
            return SendResult(
                device_token=device_token,
                status=DeliveryStatus.REJECTED,
                request_id=request_id,
                apns_id=apns_id,
                status_code=status_code,
                reason=reason,
            )

        if apns_id is None:
            return SendResult(
                device_token=device_token,
                status=DeliveryStatus.MISSING_ID,
                request_id=request_id,
                status_code=status_code,
            )

        logger.info(
            "APNS notification sent successfully",
            extra={
                "device_token": redact_device_token(device_token),
                "apns_id": str(apns_id),
                "status_code": status_code,
            }
        )
        return SendResult(
            device_token=device_token,
            status=DeliveryStatus.SUCCESS,
            request_id=request_id,
            apns_id=apns_id,
            status_code=status_code,
        )

    def _extract_apns_id(self, response: httpx.Response) -> Optional[uuid.UUID]:
        """
        Read the apns-id response header as a UUID.

        Returns None (and logs an error) when the header is missing,
        empty or not a UUID.
        """
        value = response.headers.get(APNS_ID_HEADER)
        if not value or not value.strip():
            logger.error(
                "apns-id can't be extracted from response headers",
                extra={"status_code": response.status_code}
            )
            return None

        try:
            return uuid.UUID(value.strip())
        except ValueError:
            logger.error(
                "apns-id response header is not a UUID",
                extra={"apns_id": sanitize_log_value(value), "status_code": response.status_code}
            )
            return None

    @staticmethod
    def _extract_reason(response: httpx.Response) -> Optional[str]:
        """Pull "reason" out of an APNS JSON error body."""
        if not response.content:
            return None
        try:
            error_body = response.json()
        except ValueError:
            return None
        if isinstance(error_body, dict):
            reason = error_body.get("reason")
            return str(reason) if reason else None
        return None

    async def close(self) -> None:
        """Close the HTTP client if the provider created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("APNS provider closed")

    async def __aenter__(self) -> "APNSProvider":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()


@dataclass
class ProviderBuildResult:
    """Either a ready provider or the reason it could not be built."""

    provider: Optional[APNSProvider] = None
    error: Optional[Union[SigningKeyImportError, RenewalIntervalError]] = None

    @property
    def ok(self) -> bool:
        return self.provider is not None


def build_provider(
    options: APNSOptions,
    client: Optional[httpx.AsyncClient] = None,
) -> ProviderBuildResult:
    """
    Build a provider without raising for configuration errors.

    Construction errors are fatal for the provider; they are returned
    instead of raised so callers can report them at startup.
    """
    try:
        provider = APNSProvider(options, client=client)
    except (SigningKeyImportError, RenewalIntervalError) as e:
        logger.error(f"APNS provider could not be built: {e}")
        return ProviderBuildResult(error=e)
    return ProviderBuildResult(provider=provider)
