"""Errors raised by the APNS provider."""


class APNSError(Exception):
    """Base class for APNS provider errors"""
    pass


class SigningKeyImportError(APNSError):
    """The .p8 signing key cannot be parsed into a P-256 private key."""
    pass


class RenewalIntervalError(APNSError, ValueError):
    """JWT renewal interval outside the window APNS accepts."""

    def __init__(self, minutes: int, minimum: int, maximum: int):
        self.minutes = minutes
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"JWT must be renewed no more than once every {minimum} minutes "
            f"and no less than once every 60 minutes, got {minutes} minutes "
            f"(allowed range {minimum}-{maximum})"
        )


class PayloadTooLargeError(APNSError):
    """Encoded payload is over the configured byte ceiling."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"APNS JSON payload must be at most {max_size} bytes, "
            f"generated payload was {size} bytes long"
        )


class ReservedPayloadKeyError(APNSError, ValueError):
    """Custom data tried to overwrite the 'aps' dictionary."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Custom data key '{key}' is reserved by APNS")
