"""APNS HTTP/2 provider with token-based authentication."""

__version__ = "1.0.0"
