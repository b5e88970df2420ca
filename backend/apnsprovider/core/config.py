"""Application configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
from pathlib import Path
import os

from apnsprovider.services.push.constants import JWT_RENEW_MAX_MINUTES, JWT_RENEW_MIN_MINUTES


class Settings(BaseSettings):
    """Settings loaded from environment variables (and an optional .env file)"""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" or "text"
    LOG_FILE: Optional[str] = None  # Rotating file output when set

    # APNS credentials
    APNS_TEAM_ID: Optional[str] = None  # 10-character team identifier
    APNS_KEY_ID: Optional[str] = None  # 10-character key identifier
    APNS_KEY_FILE: Optional[str] = None  # Path to .p8 auth key file
    APNS_SIGNING_KEY: Optional[str] = None  # Inline PEM, wins over APNS_KEY_FILE
    APNS_APP_ID: Optional[str] = None  # App bundle ID, sent as apns-topic

    # APNS endpoint
    APNS_HOST: Optional[str] = None  # Explicit host overrides APNS_USE_SANDBOX
    APNS_USE_SANDBOX: bool = True

    # Provider tuning
    APNS_JWT_RENEW_MINUTES: int = 45
    APNS_MAX_PAYLOAD_BYTES: int = 4096  # 5120 for VoIP pushes
    APNS_TIMEOUT_SECONDS: float = 30.0

    @field_validator('LOG_LEVEL', mode='after')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator('LOG_FORMAT', mode='after')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log output format."""
        if v.lower() not in ('json', 'text'):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v.lower()

    @field_validator('APNS_JWT_RENEW_MINUTES', mode='after')
    @classmethod
    def validate_renew_minutes(cls, v: int) -> int:
        """APNS wants a new token no more than every 20 and no less than every 60 minutes."""
        if v < JWT_RENEW_MIN_MINUTES or v > JWT_RENEW_MAX_MINUTES:
            raise ValueError(
                f"APNS_JWT_RENEW_MINUTES must be between "
                f"{JWT_RENEW_MIN_MINUTES} and {JWT_RENEW_MAX_MINUTES}"
            )
        return v

    @field_validator('APNS_MAX_PAYLOAD_BYTES', mode='after')
    @classmethod
    def validate_max_payload(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("APNS_MAX_PAYLOAD_BYTES must be positive")
        return v

    @field_validator('APNS_KEY_FILE', mode='after')
    @classmethod
    def validate_key_file_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate the .p8 key path exists when provided."""
        if v is not None and v.strip():
            path = Path(v).expanduser()
            if not path.exists():
                raise ValueError(f"APNS key file not found: {v}")
        return v

    @property
    def apns_ready(self) -> bool:
        """Check if APNS is configured well enough to build a provider."""
        has_key = bool(self.APNS_SIGNING_KEY) or (
            self.APNS_KEY_FILE is not None and os.path.exists(os.path.expanduser(self.APNS_KEY_FILE))
        )
        return (
            has_key
            and bool(self.APNS_TEAM_ID)
            and bool(self.APNS_KEY_ID)
            and bool(self.APNS_APP_ID)
        )

    def read_signing_key(self) -> Optional[str]:
        """Return the PEM text, preferring the inline key over the key file."""
        if self.APNS_SIGNING_KEY:
            return self.APNS_SIGNING_KEY
        if self.APNS_KEY_FILE:
            return Path(self.APNS_KEY_FILE).expanduser().read_text(encoding="utf-8")
        return None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
