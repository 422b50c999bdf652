"""Integration tests for the Ethereum client over a mocked web3 instance."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import Web3Exception

from bouncer.chains.evm.client import EvmClient
from bouncer.config import EthereumConfig
from bouncer.errors import (
    ChainConnectionError,
    PermanentSubmissionError,
    TransientSubmissionError,
    ValidationError,
)

# Well-known local development key (hardhat/anvil account #0).
DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RECIPIENT = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"


async def _value(value):
    return value


def _w3(status: int = 1) -> MagicMock:
    w3 = MagicMock()
    eth = w3.eth
    eth.get_balance = AsyncMock(return_value=5 * 10**18)
    eth.get_transaction_count = AsyncMock(return_value=7)
    eth.chain_id = _value(10997)
    eth.gas_price = _value(10**9)
    eth.estimate_gas = AsyncMock(return_value=21000)
    eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("ab" * 32))
    eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": status})
    return w3


def _client(w3: MagicMock, whale_key: str = DEV_KEY) -> EvmClient:
    return EvmClient(
        EthereumConfig(
            whale_key=whale_key,
            contracts={"USDC": "0x1c11bd5b4d2f2b5cb4f5c1b7e4b3c3d7dbd1c5b0"},
        ),
        w3=w3,
    )


class TestAddresses:
    def test_checksum(self) -> None:
        assert EvmClient.checksum(RECIPIENT) == "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

    def test_invalid_address(self) -> None:
        with pytest.raises(ValidationError, match="Invalid Ethereum address"):
            EvmClient.checksum("0x1234")

    def test_missing_contract(self) -> None:
        with pytest.raises(ValidationError, match="No GATEWAY contract"):
            _client(_w3()).contract_address("gateway")


class TestNativeBalance:
    @pytest.mark.asyncio
    async def test_returns_wei(self) -> None:
        w3 = _w3()
        assert await _client(w3).native_balance(RECIPIENT) == 5 * 10**18
        w3.eth.get_balance.assert_awaited_once_with(EvmClient.checksum(RECIPIENT))

    @pytest.mark.asyncio
    async def test_unreachable_node(self) -> None:
        w3 = _w3()
        w3.eth.get_balance = AsyncMock(side_effect=ConnectionRefusedError("refused"))
        with pytest.raises(ChainConnectionError):
            await _client(w3).native_balance(RECIPIENT)


class TestSendNative:
    @pytest.mark.asyncio
    async def test_signs_and_waits_for_receipt(self) -> None:
        w3 = _w3()
        receipt = await _client(w3).send_native(RECIPIENT, 10**18)

        assert receipt == {"status": 1}
        w3.eth.get_transaction_count.assert_awaited_once_with(DEV_ADDRESS, "pending")
        w3.eth.send_raw_transaction.assert_awaited_once()
        estimated = w3.eth.estimate_gas.call_args.args[0]
        assert estimated["nonce"] == 7
        assert estimated["chainId"] == 10997
        assert estimated["value"] == 10**18

    @pytest.mark.asyncio
    async def test_reverted_transaction(self) -> None:
        with pytest.raises(PermanentSubmissionError, match="reverted"):
            await _client(_w3(status=0)).send_native(RECIPIENT, 1)

    @pytest.mark.asyncio
    async def test_nonce_clash_is_transient(self) -> None:
        w3 = _w3()
        w3.eth.send_raw_transaction = AsyncMock(side_effect=Web3Exception("nonce too low"))
        with pytest.raises(TransientSubmissionError):
            await _client(w3).send_native(RECIPIENT, 1)

    @pytest.mark.asyncio
    async def test_other_rejection_is_permanent(self) -> None:
        w3 = _w3()
        w3.eth.send_raw_transaction = AsyncMock(
            side_effect=ValueError("insufficient funds for gas * price + value")
        )
        with pytest.raises(PermanentSubmissionError, match="insufficient funds"):
            await _client(w3).send_native(RECIPIENT, 1)

    @pytest.mark.asyncio
    async def test_requires_whale_key(self) -> None:
        with pytest.raises(ValidationError, match="whale_key"):
            await _client(_w3(), whale_key="").send_native(RECIPIENT, 1)


class TestErc20Balance:
    @pytest.mark.asyncio
    async def test_reads_balance_of(self) -> None:
        w3 = _w3()
        balance_of = w3.eth.contract.return_value.functions.balanceOf
        balance_of.return_value.call = AsyncMock(return_value=2_500_000)

        balance = await _client(w3).erc20_balance("0xUSDC", RECIPIENT)

        assert balance == 2_500_000
        balance_of.assert_called_once_with(EvmClient.checksum(RECIPIENT))

    @pytest.mark.asyncio
    async def test_unreachable_node(self) -> None:
        w3 = _w3()
        balance_of = w3.eth.contract.return_value.functions.balanceOf
        balance_of.return_value.call = AsyncMock(side_effect=ConnectionRefusedError("refused"))

        with pytest.raises(ChainConnectionError):
            await _client(w3).erc20_balance("0xUSDC", RECIPIENT)
