#!/usr/bin/env python3
"""Command-line entry point for the transaction explainer.

Explains a transaction, or checks a payment transaction, against the
configured chain. The detailed explanation is printed only when the supplied
payment hash verifies on chain.
"""

import argparse
import asyncio
import json
import logging
import os
import sys


# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


# Get logger for this module
logger = logging.getLogger(__name__)

from tx_explainer.config import ExplainerConfig
from tx_explainer.models import ExplanationResult, PaymentState, PaymentStatus
from tx_explainer.service import ExplainerService
from tx_explainer.utils.format_utility import format_units, is_tx_hash

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INVALID_INPUT = 2

PAYMENT_MESSAGES: dict[PaymentState, str] = {
    PaymentState.PENDING: "⏳ Payment not confirmed yet. Try again soon.",
    PaymentState.NOT_FOUND: "❌ Can’t find this payment hash. Check it.",
    PaymentState.FAILED: "❌ This payment transaction failed.",
}


def render_explanation(result: ExplanationResult, config: ExplainerConfig) -> str:
    """Render an explain result, hiding the details unless unlocked."""
    lines = [result.summary, f"Fee: {result.fee}", ""]

    if result.access_unlocked:
        lines.append(result.explanation)
    else:
        price = format_units(config.payment.required_amount, config.payment.token_decimals, places=2)
        lines.append("Detailed breakdown is locked.")
        lines.append(
            f"Send {price} {config.payment.token_symbol} on chain {config.payment.chain_id} "
            f"to {config.payment.payment_address},"
        )
        lines.append("then run again with --pay-tx <payment hash>.")

    lines += ["", f"Explorer: {result.explorer_url}"]
    return "\n".join(lines)


def payment_explorer_url(pay_tx: str | None, config: ExplainerConfig) -> str:
    """Explorer link for a payment hash, or the explorer home page if malformed."""
    pay_tx = (pay_tx or "").strip()
    return config.explorer.tx_url(pay_tx if is_tx_hash(pay_tx) else None)


def render_payment(status: PaymentStatus, config: ExplainerConfig, pay_tx: str | None = None) -> str:
    """Render a payment status as a user message; anything short of confirmed links the explorer."""
    if status.is_confirmed:
        paid = ""
        if status.paid_amount is not None:
            paid = f" ({format_units(status.paid_amount, config.payment.token_decimals)} {config.payment.token_symbol})"
        return f"✅ Payment confirmed{paid}."

    if status.is_client_error:
        message = f"❌ {status.message}"
    elif status.reason is not None and status.state is not PaymentState.FAILED:
        message = status.message
    else:
        message = PAYMENT_MESSAGES.get(status.state, status.message)
    return f"{message}\nExplorer: {payment_explorer_url(pay_tx, config)}"


async def run(args: argparse.Namespace) -> int:
    """Execute the selected subcommand and return the exit code."""
    service = ExplainerService.from_env()
    config = service.config

    match args.command:
        case "explain":
            result = await service.explain(args.tx, args.pay_tx)
            if args.json:
                print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
            else:
                print(render_explanation(result, config))
            return EXIT_OK

        case "verify":
            if args.wait:
                status = await service.wait_for_payment(
                    args.pay_tx, interval=args.interval, timeout=args.timeout
                )
            else:
                status = await service.verify_payment(args.pay_tx)

            if args.json:
                payload = status.to_dict(
                    config.payment.token_decimals,
                    explorer_url=payment_explorer_url(args.pay_tx, config),
                )
                print(json.dumps(payload, ensure_ascii=False, indent=2))
            else:
                print(render_payment(status, config, args.pay_tx))
            return EXIT_INVALID_INPUT if status.is_client_error else EXIT_OK

    raise ValueError(f"Unknown command: {args.command}")


def positive_seconds(value: str) -> float:
    """argparse type for a strictly positive number of seconds."""
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return seconds


def non_negative_seconds(value: str) -> float:
    """argparse type for a number of seconds that may be zero."""
    seconds = float(value)
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Explain a blockchain transaction; details unlock after an on-chain payment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  RPC_URLS            - Comma separated RPC endpoints, tried in order
  REQUEST_TIMEOUT     - Per-endpoint timeout in seconds (default: 10)
  CHAIN_ID            - Accepted payment network (default: 8453, Base)
  PAYMENT_ADDRESS     - Recipient of payments
  STABLECOIN_ADDRESS  - Accepted token contract (default: USDC on Base)
  PRICE_UNITS         - Price in the token's smallest unit (default: 3000000)
  MIN_CONFIRMATIONS   - Required confirmations (default: 1)
  EXPLORER_URL        - Block explorer base URL (default: https://basescan.org)
  LOG_LEVEL           - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: WARNING)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the raw result as JSON"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    explain = subparsers.add_parser("explain", help="Explain a transaction")
    explain.add_argument("tx", help="Transaction hash to explain")
    explain.add_argument("--pay-tx", default=None, help="Payment transaction hash")

    verify = subparsers.add_parser("verify", help="Check a payment transaction")
    verify.add_argument("pay_tx", help="Payment transaction hash")
    verify.add_argument(
        "--wait",
        action="store_true",
        default=False,
        help="Keep polling until confirmed, failed or timed out"
    )
    verify.add_argument(
        "--interval",
        type=positive_seconds,
        default=ExplainerService.DEFAULT_POLL_INTERVAL,
        help="Seconds between checks with --wait"
    )
    verify.add_argument(
        "--timeout",
        type=non_negative_seconds,
        default=ExplainerService.DEFAULT_POLL_TIMEOUT,
        help="Give up after this many seconds with --wait"
    )
    return parser


def main() -> None:
    """Parse arguments, load configuration and run the command."""
    args: argparse.Namespace = build_parser().parse_args()
    setup_logging(args.log_level)

    try:
        exit_code = asyncio.run(run(args))
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables (see --help)")
        sys.exit(EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
