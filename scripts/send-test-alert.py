#!/usr/bin/env python3
"""
APNS Test Alert Sender

Helps check an APNS token-auth setup by:
- Validating the APNS_* settings and the .p8 signing key
- Printing a freshly signed provider token and its claims
- Sending one alert notification to a device token

Settings are read from the environment or a .env file in the
working directory (see apnsprovider.core.config.Settings).
"""

import sys
import os
import asyncio
import argparse
import json
import uuid

# Allow running from a source checkout without installing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import jwt
from pydantic import ValidationError

from apnsprovider.core.config import settings
from apnsprovider.core.logging_config import setup_logging
from apnsprovider.services.push import (
    AlertMessage,
    APNSOptions,
    APNSProvider,
    APNSError,
    build_alert_payload,
    build_provider,
)


# Color codes for CLI output
class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    END = '\033[0m'


def print_success(msg: str):
    print(f"{Colors.GREEN}[ok]{Colors.END} {msg}")


def print_error(msg: str):
    print(f"{Colors.RED}[error]{Colors.END} {msg}")


def print_warning(msg: str):
    print(f"{Colors.YELLOW}[warn]{Colors.END} {msg}")


def print_info(msg: str):
    print(f"{Colors.BLUE}[info]{Colors.END} {msg}")


# ============================================================================
# Commands
# ============================================================================

def load_provider() -> APNSProvider | None:
    """Build a provider from settings, reporting what is wrong if it fails."""
    if not settings.apns_ready:
        print_error("APNS is not configured (need APNS_TEAM_ID, APNS_KEY_ID, APNS_APP_ID "
                    "and APNS_SIGNING_KEY or APNS_KEY_FILE)")
        return None

    try:
        options = APNSOptions.from_settings(settings)
    except (ValueError, ValidationError) as e:
        print_error(f"Invalid APNS settings: {e}")
        return None

    result = build_provider(options)
    if not result.ok:
        print_error(f"Provider could not be built: {result.error}")
        return None
    return result.provider


def check_config() -> bool:
    """Validate settings and the signing key."""
    provider = load_provider()
    if provider is None:
        return False

    options = provider.options
    print_success("Signing key imported (P-256)")
    print_info(f"Team ID: {options.team_id}")
    print_info(f"Key ID: {options.key_id}")
    print_info(f"App ID (apns-topic): {options.app_id}")
    print_info(f"Host: {options.host}")
    print_info(f"Token renewal: every {options.jwt_renew_minutes} minutes")
    print_info(f"Payload ceiling: {options.max_payload_bytes} bytes")
    return True


def show_token() -> bool:
    """Sign a provider token and print it with its header and claims."""
    provider = load_provider()
    if provider is None:
        return False

    token = provider.get_token()
    print(token)
    print_info(f"Header: {json.dumps(jwt.get_unverified_header(token))}")
    print_info(f"Claims: {json.dumps(jwt.decode(token, options={'verify_signature': False}))}")
    return True


async def send_alert(
    device_token: str,
    title: str,
    subtitle: str | None,
    body: str,
    dry_run: bool = False,
) -> bool:
    """Send one alert carrying a random custom data entry."""
    provider = load_provider()
    if provider is None:
        return False

    message = AlertMessage(
        title=title,
        subtitle=subtitle,
        body=body,
        data={"RandomGuid": str(uuid.uuid4())},
    )

    if dry_run:
        print_info(f"DRY RUN: Would POST to {provider.device_url(device_token)}")
        print(json.dumps(build_alert_payload(message), indent=2, ensure_ascii=False))
        return True

    async with provider:
        try:
            result = await provider.send_alert(message, device_token)
        except APNSError as e:
            print_error(f"Notification not sent: {e}")
            return False

    print_info(f"Request apns-id: {result.request_id}")
    if result.success:
        print_success(f"Notification accepted, apns-id: {result.apns_id}")
        return True

    print_error(f"Failed to send notification: {result.error}")
    print_info(f"Status code: {result.status_code}")
    if result.apns_id is not None:
        print_info(f"Response apns-id: {result.apns_id}")
    return False


# ============================================================================
# CLI Interface
# ============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="APNS token-auth test sender"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser(
        "config",
        help="Validate APNS settings and signing key"
    )

    subparsers.add_parser(
        "token",
        help="Print a signed provider token"
    )

    send_parser = subparsers.add_parser(
        "send",
        help="Send a test alert to a device"
    )
    send_parser.add_argument(
        "device_token",
        help="Hex device token reported by the app"
    )
    send_parser.add_argument(
        "--title",
        default="Notification's title",
        help="Alert title"
    )
    send_parser.add_argument(
        "--subtitle",
        default="Subtitle for details",
        help="Alert subtitle"
    )
    send_parser.add_argument(
        "--body",
        default="A long body with some stuff in there.",
        help="Alert body"
    )
    send_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request target and payload without sending"
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL"
    )

    args = parser.parse_args()
    setup_logging(log_level=args.log_level, log_format="text")

    if args.command == "config":
        ok = check_config()
    elif args.command == "token":
        ok = show_token()
    elif args.command == "send":
        ok = asyncio.run(send_alert(
            args.device_token,
            title=args.title,
            subtitle=args.subtitle,
            body=args.body,
            dry_run=args.dry_run,
        ))
    else:
        parser.print_help()
        ok = False

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
