"""
Structured JSON Logging Configuration

Provides centralized logging configuration with:
- JSON formatted output for machine parsing (python-json-logger)
- apns-id tracking via contextvars, so every record emitted during
  a send carries the notification's request identifier
- Optional file rotation
- Configurable log levels via environment
"""
import logging
import logging.handlers
import os
import contextvars
import re
from datetime import datetime, timezone
from typing import Optional
from pythonjsonlogger import jsonlogger

# Context variable for the apns-id of the send in progress
notification_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'notification_id', default=None
)

# Device tokens are credentials for a single device; only a prefix is logged
DEVICE_TOKEN_LOG_PREFIX = 8


class NotificationIdFilter(logging.Filter):
    """
    Logging filter that adds notification_id to all log records.

    Uses contextvars to read the apns-id of the current send, enabling
    correlation of all logs from a single notification.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.notification_id = notification_id_var.get() or "-"
        return True


class SanitizingFilter(logging.Filter):
    """
    Filter that sanitizes log messages to prevent log injection attacks.

    Alert titles and custom data come from callers and end up in debug
    logs, so newlines are flattened before records are written.
    """

    DANGEROUS_PATTERNS = [
        (r'\r\n', ' '),  # CRLF injection
        (r'\n', ' '),    # Newline injection
        (r'\r', ' '),    # Carriage return injection
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.DANGEROUS_PATTERNS:
                record.msg = re.sub(pattern, replacement, record.msg)

        if record.args:
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized = arg
                    for pattern, replacement in self.DANGEROUS_PATTERNS:
                        sanitized = re.sub(pattern, replacement, sanitized)
                    sanitized_args.append(sanitized)
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds standard fields to all log entries.

    Output format:
    {
        "timestamp": "2026-10-19T10:30:00.000000+00:00",
        "level": "INFO",
        "message": "APNS notification sent",
        "module": "apns_provider",
        "notification_id": "uuid-here",
        "logger": "apnsprovider.services.push.apns_provider",
        ...extra fields...
    }
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).isoformat()

        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['logger'] = record.name
        log_record['notification_id'] = getattr(record, 'notification_id', '-')

        if record.funcName:
            log_record['function'] = record.funcName

        if 'message' not in log_record:
            log_record['message'] = record.getMessage()


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure process-wide logging.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        log_format: "json" or "text" (default from settings.LOG_FORMAT)
        log_file: Rotating log file path (default from settings.LOG_FILE,
            console only when unset)

    Returns:
        Root logger configured for the application
    """
    # Read at call time; importing the push package must not load settings
    from apnsprovider.core.config import settings

    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    fmt = (log_format or settings.LOG_FORMAT).lower()
    log_file = log_file or settings.LOG_FILE

    if fmt == 'json':
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(notification_id)s] %(message)s',
            defaults={'notification_id': '-'}
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(NotificationIdFilter())
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)

        # Max 10MB per file, keep 5 backups
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(NotificationIdFilter())
        file_handler.addFilter(SanitizingFilter())
        root_logger.addHandler(file_handler)

    # Suppress noisy HTTP/2 stack loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('hpack').setLevel(logging.WARNING)

    return root_logger


def set_notification_id(notification_id: Optional[str]) -> contextvars.Token:
    """
    Set the apns-id for the current context.

    Returns:
        Token that can be used to reset the context
    """
    return notification_id_var.set(notification_id)


def get_notification_id() -> Optional[str]:
    """Get the current apns-id from context, or None outside a send."""
    return notification_id_var.get()


def clear_notification_id(token: contextvars.Token) -> None:
    """Reset the apns-id context using the token from set_notification_id."""
    notification_id_var.reset(token)


def sanitize_log_value(value: str) -> str:
    """
    Sanitize a value for safe logging, preventing log injection.

    Args:
        value: String value to sanitize

    Returns:
        Sanitized string safe for logging
    """
    if not isinstance(value, str):
        return str(value)

    sanitized = value.replace('\r\n', ' ').replace('\n', ' ').replace('\r', ' ')

    # Limit length to prevent log flooding
    max_length = 10000
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + '...[truncated]'

    return sanitized


def redact_device_token(device_token: str) -> str:
    """Shorten a device token to a loggable prefix."""
    if len(device_token) <= DEVICE_TOKEN_LOG_PREFIX:
        return device_token
    return device_token[:DEVICE_TOKEN_LOG_PREFIX] + "..."
