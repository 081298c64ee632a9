"""
Minimal script that creates a redirect quick payment and waits for it to settle.
"""

from __future__ import annotations

import argparse
import logging
import sys

from blink_debit import (
    BlinkAwaitError,
    BlinkDebitError,
    ConfigError,
    build_amount,
    build_pcr,
    build_quick_payment_request,
    build_redirect_flow,
    create_blink_debit_client,
    load_blink_config,
)
from blink_debit.cli import _configure_logging, _positive_int, _setting


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create and await a Blink Debit quick payment")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing BLINKPAY_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_setting,
        metavar="BLINKPAY_NAME=VALUE",
        default=None,
        help="Override a BLINKPAY_* setting without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--bank", default="PNZ", help="Bank to authorise with (default: PNZ)")
    parser.add_argument(
        "--redirect-uri",
        default="https://www.blinkpay.co.nz/sample-merchant-return-page",
        help="Where the customer lands after authorising",
    )
    parser.add_argument("--amount", default="1.25", help="Amount in NZD (default: 1.25)")
    parser.add_argument("--particulars", default="particulars", help="Statement particulars")
    parser.add_argument("--code", default=None, help="Statement code")
    parser.add_argument("--reference", default=None, help="Statement reference")
    parser.add_argument(
        "--max-wait",
        type=_positive_int,
        default=300,
        help="Number of one-second poll cycles before revoking (default: 300)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    _configure_logging(args.log_level)

    try:
        config = load_blink_config(
            env_file=args.env_file,
            overrides=dict(args.set or ()),
        )
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    with create_blink_debit_client(config=config) as client:
        try:
            request = build_quick_payment_request(
                build_redirect_flow(args.bank, args.redirect_uri),
                build_pcr(args.particulars, args.code, args.reference),
                build_amount(args.amount),
            )
            created = client.create_quick_payment(request)
        except BlinkDebitError as exc:
            logging.error("Creating the quick payment failed: %s", exc)
            return 1

        logging.info("Send the customer to %s", created.redirect_uri)

        try:
            quick_payment = client.await_successful_quick_payment(
                created.quick_payment_id, args.max_wait
            )
        except BlinkAwaitError as exc:
            logging.error("Quick payment %s failed (%s): %s", created.quick_payment_id, exc.failure.value, exc)
            return 1
        except BlinkDebitError as exc:
            logging.error("Awaiting quick payment %s failed: %s", created.quick_payment_id, exc)
            return 1

    logging.info(
        "Quick payment %s finished with status %s",
        quick_payment.quick_payment_id,
        quick_payment.status.value,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
