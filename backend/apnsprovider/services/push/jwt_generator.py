"""
Provider token (JWT) generation for APNS token-based authentication.

APNS rejects provider tokens older than one hour and answers
TooManyProviderTokenUpdates when a token is refreshed more than once
every 20 minutes, so the token is cached and only re-signed once the
configured renewal interval has elapsed on the wall clock.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from apnsprovider.services.push.constants import (
    JWT_ALGORITHM,
    JWT_RENEW_DEFAULT_MINUTES,
    JWT_RENEW_MAX_MINUTES,
    JWT_RENEW_MIN_MINUTES,
)
from apnsprovider.services.push.exceptions import RenewalIntervalError

logger = logging.getLogger(__name__)


def check_renew_minutes(renew_minutes: int) -> int:
    """Raise RenewalIntervalError unless renew_minutes is within 20-59."""
    if renew_minutes < JWT_RENEW_MIN_MINUTES or renew_minutes > JWT_RENEW_MAX_MINUTES:
        raise RenewalIntervalError(renew_minutes, JWT_RENEW_MIN_MINUTES, JWT_RENEW_MAX_MINUTES)
    return renew_minutes


class TokenState(str, Enum):
    """Whether the cached token can be sent as-is."""

    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class CachedToken:
    """A signed token together with what it was minted for."""

    token: str
    team_id: str
    key_id: str
    issued_at: int  # iat claim, Unix seconds
    generated_at: float  # clock reading used for staleness
    epoch: int  # generation number, 1 for the first token signed


class APNSJWTGenerator:
    """
    Generates and caches the ES256 provider token.

    Staleness is measured on the wall clock, never on request count. The
    cached token is swapped as a single immutable CachedToken so readers
    always see a complete token, and regeneration runs under a lock so
    concurrent callers at the renewal boundary sign only once.

    Usage:
        generator = APNSJWTGenerator(load_signing_key(pem), renew_minutes=45)
        token = generator.get_token("ABC123WXYZ", "DEF456")

    Attributes:
        renew_minutes: Renewal interval in minutes (20-59)
        epoch: Number of tokens signed so far
    """

    def __init__(
        self,
        signing_key: ec.EllipticCurvePrivateKey,
        renew_minutes: int = JWT_RENEW_DEFAULT_MINUTES,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            signing_key: Imported P-256 private key
            renew_minutes: Renewal interval, must be within 20-59 minutes
            clock: Returns current Unix time in seconds

        Raises:
            RenewalIntervalError: renew_minutes outside 20-59
        """
        self.renew_minutes = check_renew_minutes(renew_minutes)
        self._renew_seconds = renew_minutes * 60
        self._signing_key = signing_key
        self._clock = clock
        self._lock = threading.Lock()
        self._current: Optional[CachedToken] = None
        self.epoch = 0

    @property
    def current(self) -> Optional[CachedToken]:
        return self._current

    @property
    def state(self) -> TokenState:
        cached = self._current
        if cached is None or self._clock() - cached.generated_at > self._renew_seconds:
            return TokenState.STALE
        return TokenState.FRESH

    def _is_fresh(self, cached: Optional[CachedToken], team_id: str, key_id: str, now: float) -> bool:
        if cached is None:
            return False
        if cached.team_id != team_id or cached.key_id != key_id:
            return False
        return now - cached.generated_at <= self._renew_seconds

    def get_token(self, team_id: str, key_id: str) -> str:
        """
        Return the current provider token, signing a new one when stale.

        Args:
            team_id: Team identifier, used as the iss claim
            key_id: Signing key identifier, used as the kid header

        Returns:
            Compact JWT (header.claims.signature, base64url)
        """
        return self.get_cached_token(team_id, key_id).token

    def get_cached_token(self, team_id: str, key_id: str) -> CachedToken:
        """Like get_token, but returns the token with its generation epoch."""
        cached = self._current
        if self._is_fresh(cached, team_id, key_id, self._clock()):
            return cached

        with self._lock:
            # Another caller may have renewed while we waited
            now = self._clock()
            cached = self._current
            if self._is_fresh(cached, team_id, key_id, now):
                return cached

            self._current = self._sign(team_id, key_id, now, self.epoch + 1)
            self.epoch = self._current.epoch
            return self._current

    def invalidate(self, epoch: Optional[int] = None) -> bool:
        """
        Force the next get_token call to sign a new token.

        Args:
            epoch: Generation of the token APNS reported as expired. When
                given, the cache is only cleared if it still holds that
                generation, so a late answer about an old token can't
                discard one signed after it.

        Returns:
            True if the cached token was cleared
        """
        with self._lock:
            cached = self._current
            if cached is None:
                return False
            if epoch is not None and cached.epoch != epoch:
                logger.debug(
                    "APNS JWT already renewed, not invalidated",
                    extra={"expired_epoch": epoch, "current_epoch": cached.epoch}
                )
                return False
            self._current = None
        logger.debug("APNS JWT invalidated", extra={"epoch": cached.epoch})
        return True

    def _sign(self, team_id: str, key_id: str, now: float, epoch: int) -> CachedToken:
        issued_at = int(now)
        payload = {
            "iss": team_id,
            "iat": issued_at,
        }
        headers = {
            "alg": JWT_ALGORITHM,
            "kid": key_id,
        }

        token = jwt.encode(
            payload,
            self._signing_key,
            algorithm=JWT_ALGORITHM,
            headers=headers,
        )

        logger.debug(
            "Generated new APNS JWT",
            extra={
                "team_id": team_id,
                "key_id": key_id,
                "issued_at": issued_at,
                "renew_minutes": self.renew_minutes,
            }
        )

        return CachedToken(
            token=token,
            team_id=team_id,
            key_id=key_id,
            issued_at=issued_at,
            generated_at=now,
            epoch=epoch,
        )
