"""Unit tests for CLI argument parsing and command dispatch."""
from __future__ import annotations

from unittest.mock import patch

import pytest

from bouncer.cli import build_parser, command_body, main
from bouncer.config import AppConfig, TimeoutsConfig


class TestBuildParser:
    def test_create_lp_pool_command(self) -> None:
        args = build_parser().parse_args(["create-lp-pool", "ETH", "1000"])
        assert args.command == "create-lp-pool"
        assert args.asset == "ETH"
        assert args.price == "1000"

    def test_fund_flip_command(self) -> None:
        args = build_parser().parse_args(["fund-flip", "0x" + "11" * 32, "10"])
        assert args.command == "fund-flip"
        assert args.account == "0x" + "11" * 32
        assert args.amount == "10"

    def test_native_balance_command(self) -> None:
        args = build_parser().parse_args(["native-balance", "Ethereum", "0xabc"])
        assert args.chain == "Ethereum"
        assert args.address == "0xabc"

    def test_global_options(self) -> None:
        args = build_parser().parse_args(
            ["--config", "x.yaml", "--log-level", "DEBUG", "send-eth", "0xabc", "1"]
        )
        assert args.config == "x.yaml"
        assert args.log_level == "DEBUG"
        assert args.command == "send-eth"

    def test_missing_arguments_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["fund-btc", "bcrt1qxyz"])

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None


class TestCommandBody:
    @pytest.mark.parametrize(
        ("argv", "timeout"),
        [
            (["create-lp-pool", "ETH", "1000"], 120.0),
            (["fund-flip", "0x" + "11" * 32, "10"], 120.0),
            (["send-usdc", "0xabc", "5"], 20.0),
            (["send-eth", "0xabc", "1"], 60.0),
            (["fund-btc", "bcrt1qxyz", "0.5"], 120.0),
            (["native-balance", "Ethereum", "0xabc"], 20.0),
        ],
    )
    def test_timeouts_per_command(self, argv: list[str], timeout: float) -> None:
        args = build_parser().parse_args(argv)
        body, deadline = command_body(args, AppConfig())
        assert callable(body)
        assert deadline == timeout

    def test_configured_timeout_wins(self) -> None:
        args = build_parser().parse_args(["send-usdc", "0xabc", "5"])
        config = AppConfig(timeouts=TimeoutsConfig(send_usdc=3.0))
        _, deadline = command_body(args, config)
        assert deadline == 3.0

    def test_body_is_not_started_eagerly(self) -> None:
        args = build_parser().parse_args(["fund-btc", "bcrt1qxyz", "0.5"])
        with patch("bouncer.cli.fund_btc") as fund_btc:
            body, _ = command_body(args, AppConfig())
            fund_btc.assert_not_called()
            body()
        fund_btc.assert_called_once()
        assert fund_btc.call_args.args[:2] == ("bcrt1qxyz", "0.5")


class TestMain:
    def test_no_command_exits_with_failure(self) -> None:
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    def test_runs_command_under_its_deadline(self) -> None:
        with (
            patch("bouncer.cli.configure_logging"),
            patch("bouncer.cli.load_config", return_value=AppConfig()) as load,
            patch("bouncer.cli.configure_connection") as configure,
            patch("bouncer.cli.run_command") as run,
        ):
            main(["--config", "c.yaml", "send-eth", "0xabc", "1"])

        load.assert_called_once_with("c.yaml")
        configure.assert_called_once_with(AppConfig().state_chain)
        assert run.call_args.args[1] == 60.0
