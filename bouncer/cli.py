"""Command-line interface for the bouncer harness commands."""
from __future__ import annotations

import argparse
import sys
from typing import Any, Awaitable, Callable

from .assets import parse_asset, parse_chain
from .commands import (
    create_lp_pool,
    fund_btc,
    fund_flip,
    native_balance,
    send_eth,
    send_usdc,
)
from .config import AppConfig, load_config
from .logging_setup import configure_logging
from .services import configure_connection, run_command


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="bouncer",
        description="End-to-end test harness commands",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    pool = sub.add_parser("create-lp-pool", help="Create an ASSET/USDC pool via governance")
    pool.add_argument("asset", help="Base asset, e.g. ETH")
    pool.add_argument("price", help="Initial price in USDC per unit of ASSET")

    flip = sub.add_parser("fund-flip", help="Fund a state chain account with FLIP")
    flip.add_argument("account", help="Hex public key or ss58 address")
    flip.add_argument("amount", help="Amount of FLIP")

    usdc = sub.add_parser("send-usdc", help="Send USDC to an Ethereum address")
    usdc.add_argument("address")
    usdc.add_argument("amount", help="Amount of USDC")

    eth = sub.add_parser("send-eth", help="Send ETH to an Ethereum address")
    eth.add_argument("address")
    eth.add_argument("amount", help="Amount of ETH")

    btc = sub.add_parser("fund-btc", help="Send BTC to a Bitcoin address")
    btc.add_argument("address")
    btc.add_argument("amount", help="Amount of BTC")

    balance = sub.add_parser("native-balance", help="Print a native balance")
    balance.add_argument("chain", help="Chain name, e.g. Ethereum")
    balance.add_argument("address")

    return parser


def command_body(
    args: argparse.Namespace, config: AppConfig
) -> tuple[Callable[[], Awaitable[Any]], float]:
    """Resolve the selected command into a coroutine factory and its deadline."""
    timeouts = config.timeouts
    amount = getattr(args, "amount", "").strip()

    if args.command == "create-lp-pool":
        return (
            lambda: create_lp_pool(parse_asset(args.asset), args.price.strip(), config),
            timeouts.create_lp_pool,
        )
    if args.command == "fund-flip":
        return lambda: fund_flip(args.account, amount, config), timeouts.fund_flip
    if args.command == "send-usdc":
        return lambda: send_usdc(args.address, amount, config), timeouts.send_usdc
    if args.command == "send-eth":
        return lambda: send_eth(args.address, amount, config), timeouts.send_eth
    if args.command == "fund-btc":
        return lambda: fund_btc(args.address, amount, config), timeouts.fund_btc
    if args.command == "native-balance":
        return (
            lambda: native_balance(parse_chain(args.chain), args.address, config),
            timeouts.native_balance,
        )
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    config = load_config(args.config)
    configure_connection(config.state_chain)

    body, timeout = command_body(args, config)
    run_command(body, timeout)


if __name__ == "__main__":
    main()
