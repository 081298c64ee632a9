"""
Command-line interface for inspecting and awaiting Blink Debit resources.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .api import ConfigError, create_blink_debit_client, load_blink_config
from .core.client import BlinkDebitClient
from .core.environment import ENV_PREFIX
from .core.errors import BlinkAwaitError, BlinkDebitError
from .core.status import ResourceKind

REFUND_KIND = "refund"

_REVOCABLE_KINDS = (
    ResourceKind.SINGLE_CONSENT.value,
    ResourceKind.ENDURING_CONSENT.value,
    ResourceKind.QUICK_PAYMENT.value,
)


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def _setting(text: str) -> Tuple[str, str]:
    name, sep, value = text.partition("=")
    name = name.strip().upper()
    if not sep or not name.startswith(ENV_PREFIX) or name == ENV_PREFIX:
        raise argparse.ArgumentTypeError(f"Expected {ENV_PREFIX}NAME=VALUE, got '{text}'")
    return name, value


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("Value must be at least 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blink-debit",
        description="Inspect, await and revoke Blink Debit consents and payments",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing BLINKPAY_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_setting,
        metavar="BLINKPAY_NAME=VALUE",
        default=None,
        help="Override a BLINKPAY_* setting without editing the .env file (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    all_kinds = [kind.value for kind in ResourceKind]

    get_parser = subparsers.add_parser("get", help="Fetch a resource and print it as JSON")
    get_parser.add_argument("kind", choices=all_kinds + [REFUND_KIND])
    get_parser.add_argument("resource_id")

    await_parser = subparsers.add_parser(
        "await", help="Poll a resource until it succeeds, fails or the wait runs out"
    )
    await_parser.add_argument("kind", choices=all_kinds)
    await_parser.add_argument("resource_id")
    await_parser.add_argument(
        "--max-wait",
        type=_positive_int,
        default=300,
        help="Number of one-second poll cycles before giving up (default: 300)",
    )
    await_parser.add_argument(
        "--strict",
        action="store_true",
        help="Report the precise failure type instead of the generic await failure",
    )

    revoke_parser = subparsers.add_parser("revoke", help="Revoke a consent or quick payment")
    revoke_parser.add_argument("kind", choices=list(_REVOCABLE_KINDS))
    revoke_parser.add_argument("resource_id")

    subparsers.add_parser("meta", help="List the banks and the flows they support")
    return parser


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _getter(client: BlinkDebitClient, kind: str) -> Callable[[str], Any]:
    getters: Dict[str, Callable[[str], Any]] = {
        ResourceKind.SINGLE_CONSENT.value: client.get_single_consent,
        ResourceKind.ENDURING_CONSENT.value: client.get_enduring_consent,
        ResourceKind.QUICK_PAYMENT.value: client.get_quick_payment,
        ResourceKind.PAYMENT.value: client.get_payment,
        REFUND_KIND: client.get_refund,
    }
    return getters[kind]


def _revoker(client: BlinkDebitClient, kind: str) -> Callable[[str], None]:
    revokers: Dict[str, Callable[[str], None]] = {
        ResourceKind.SINGLE_CONSENT.value: client.revoke_single_consent,
        ResourceKind.ENDURING_CONSENT.value: client.revoke_enduring_consent,
        ResourceKind.QUICK_PAYMENT.value: client.revoke_quick_payment,
    }
    return revokers[kind]


def _run_await(client: BlinkDebitClient, args: argparse.Namespace) -> int:
    kind = ResourceKind(args.kind)
    outcome = client.poll(kind, args.resource_id, args.max_wait)
    try:
        resource = outcome.unwrap() if args.strict else outcome.unwrap_generic()
    except BlinkAwaitError as exc:
        logging.error("Awaiting %s %s failed (%s): %s", kind.label, args.resource_id, exc.failure.value, exc)
        return 1
    except BlinkDebitError as exc:
        logging.error(
            "Awaiting %s %s failed with %s: %s", kind.label, args.resource_id, type(exc).__name__, exc
        )
        return 1

    logging.info("%s %s reached a successful status", kind.label.capitalize(), args.resource_id)
    _print_json(resource.raw)
    return 0


def _dispatch(client: BlinkDebitClient, args: argparse.Namespace) -> int:
    if args.command == "await":
        return _run_await(client, args)

    try:
        if args.command == "get":
            _print_json(_getter(client, args.kind)(args.resource_id).raw)
        elif args.command == "revoke":
            _revoker(client, args.kind)(args.resource_id)
            logging.info("Revoked %s %s", args.kind.replace("-", " "), args.resource_id)
        elif args.command == "meta":
            _print_json([bank.raw for bank in client.get_meta()])
    except BlinkDebitError as exc:
        logging.error("%s request failed: %s", args.command, exc)
        return 1
    return 0


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = dict(args.set or ())

    try:
        config = load_blink_config(env_file=args.env_file, overrides=overrides)
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    with create_blink_debit_client(config=config) as client:
        return _dispatch(client, args)
