"""Operator commands: configuration readiness and request signing."""

from __future__ import annotations

import argparse
import os
import time
from typing import Sequence

from .config.settings import load_settings, validate_settings
from .errors import ConfigurationError
from .logging_config import configure_logging, get_logger
from .slack.signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, compute_signature


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deploybot", description="Slack deploy bot utilities")
    subcommands = parser.add_subparsers(dest="command", required=True)

    check = subcommands.add_parser(
        "check-config",
        help="Validate environment settings and the service catalog",
    )
    check.add_argument("--log-level", default="WARNING", help="Logging level for the check")

    sign = subcommands.add_parser(
        "sign",
        help="Print Slack signing headers for a request body (local smoke tests)",
    )
    sign.add_argument("--body", required=True, help="Raw form-encoded request body")
    sign.add_argument("--timestamp", type=int, default=None, help="Unix timestamp to sign")
    sign.add_argument(
        "--secret",
        default=None,
        help="Signing secret (defaults to SLACK_SIGNING_SECRET)",
    )
    return parser


def _run_check_config(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)
    logger = get_logger(__name__)

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("Configuration could not be loaded", extra=exc.context)
        print(f"FAIL {exc}")
        return 1

    validation = validate_settings(settings)
    for error in validation.errors:
        print(f"FAIL {error}")
    if not validation.valid:
        return 1

    catalog = settings.catalog
    for service in catalog.services.values():
        print(f"OK service {service.alias} -> trigger {service.trigger_id}")
    for environment in catalog.environments.values():
        print(f"OK environment {environment.alias} -> project {environment.project_id}")
    print(f"OK allowed users: {len(settings.allowed_users)}")
    print(f"OK response mode: {settings.response_mode}")
    return 0


def _run_sign(args: argparse.Namespace) -> int:
    secret = args.secret or os.getenv("SLACK_SIGNING_SECRET", "")
    if not secret:
        print("FAIL signing secret is required (--secret or SLACK_SIGNING_SECRET)")
        return 1
    timestamp = args.timestamp if args.timestamp is not None else int(time.time())
    print(f"{TIMESTAMP_HEADER}: {timestamp}")
    print(f"{SIGNATURE_HEADER}: {compute_signature(secret, timestamp, args.body)}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "check-config":
        return _run_check_config(args)
    if args.command == "sign":
        return _run_sign(args)

    parser.error(f"Unsupported command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
