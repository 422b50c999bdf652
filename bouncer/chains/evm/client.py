"""Ethereum JSON-RPC client for funding test accounts."""
from __future__ import annotations

import logging
from typing import Any

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ...config import EthereumConfig
from ...errors import (
    ChainConnectionError,
    PermanentSubmissionError,
    TransientSubmissionError,
    ValidationError,
)
from .abis import ERC20_ABI, STATE_CHAIN_GATEWAY_ABI

logger = logging.getLogger(__name__)

_TRANSIENT_REJECTIONS = ("nonce too low", "replacement transaction underpriced")


class EvmClient:
    """Signs and sends transactions from the configured whale account."""

    def __init__(self, config: EthereumConfig, w3: AsyncWeb3 | None = None) -> None:
        self.endpoint = config.rpc_endpoint
        self.contracts = dict(config.contracts)
        self.receipt_timeout = config.receipt_timeout
        self._w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(config.rpc_endpoint))
        self._account = Account.from_key(config.whale_key) if config.whale_key else None

    def contract_address(self, name: str) -> str:
        address = self.contracts.get(name.upper())
        if not address:
            raise ValidationError(f"No {name.upper()} contract address configured")
        return AsyncWeb3.to_checksum_address(address)

    @staticmethod
    def checksum(address: str) -> str:
        if not AsyncWeb3.is_address(address):
            raise ValidationError(f"Invalid Ethereum address: {address!r}")
        return AsyncWeb3.to_checksum_address(address)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def native_balance(self, address: str) -> int:
        """Balance in wei."""
        try:
            return int(await self._w3.eth.get_balance(self.checksum(address)))
        except (OSError, Web3Exception) as e:
            raise ChainConnectionError(f"Ethereum RPC {self.endpoint} failed: {e}") from e

    async def erc20_balance(self, token: str, address: str) -> int:
        """Token balance in the token's base units."""
        contract = self._w3.eth.contract(address=token, abi=ERC20_ABI)
        try:
            return int(await contract.functions.balanceOf(self.checksum(address)).call())
        except (OSError, Web3Exception) as e:
            raise ChainConnectionError(f"Ethereum RPC {self.endpoint} failed: {e}") from e

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def send_native(self, to: str, amount_wei: int) -> dict[str, Any]:
        tx = {"to": self.checksum(to), "value": int(amount_wei)}
        return await self._send(tx)

    async def erc20_transfer(self, token: str, to: str, amount: int) -> dict[str, Any]:
        contract = self._w3.eth.contract(address=token, abi=ERC20_ABI)
        tx = await contract.functions.transfer(self.checksum(to), int(amount)).build_transaction(
            {"from": self._sender()}
        )
        return await self._send(tx)

    async def erc20_approve(self, token: str, spender: str, amount: int) -> dict[str, Any]:
        contract = self._w3.eth.contract(address=token, abi=ERC20_ABI)
        tx = await contract.functions.approve(spender, int(amount)).build_transaction(
            {"from": self._sender()}
        )
        return await self._send(tx)

    async def fund_state_chain_account(
        self, gateway: str, node_id: bytes, amount: int
    ) -> dict[str, Any]:
        contract = self._w3.eth.contract(address=gateway, abi=STATE_CHAIN_GATEWAY_ABI)
        tx = await contract.functions.fundStateChainAccount(node_id, int(amount)).build_transaction(
            {"from": self._sender()}
        )
        return await self._send(tx)

    def _sender(self) -> str:
        if self._account is None:
            raise ValidationError("ethereum.whale_key is not configured")
        return self._account.address

    async def _send(self, tx: dict[str, Any]) -> dict[str, Any]:
        sender = self._sender()
        eth = self._w3.eth
        try:
            tx = {
                **tx,
                "from": sender,
                "nonce": await eth.get_transaction_count(sender, "pending"),
                "chainId": await eth.chain_id,
            }
            tx.pop("maxFeePerGas", None)
            tx.pop("maxPriorityFeePerGas", None)
            if "gasPrice" not in tx:
                tx["gasPrice"] = await eth.gas_price
            if "gas" not in tx:
                tx["gas"] = await eth.estimate_gas(tx)

            signed = self._account.sign_transaction(tx)
            tx_hash = await eth.send_raw_transaction(signed.raw_transaction)
            logger.info("Sent Ethereum tx %s (nonce %d)", tx_hash.hex(), tx["nonce"])
            receipt = await eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except OSError as e:
            raise ChainConnectionError(f"Ethereum RPC {self.endpoint} failed: {e}") from e
        except (Web3Exception, ValueError) as e:
            if isinstance(e, ValidationError):
                raise
            message = str(e)
            if any(marker in message.lower() for marker in _TRANSIENT_REJECTIONS):
                raise TransientSubmissionError(f"Ethereum tx rejected: {message}") from e
            raise PermanentSubmissionError(f"Ethereum tx rejected: {message}") from e

        if receipt["status"] != 1:
            raise PermanentSubmissionError(f"Ethereum tx {tx_hash.hex()} reverted")
        return dict(receipt)
