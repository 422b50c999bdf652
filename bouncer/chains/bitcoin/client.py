"""Bitcoin Core JSON-RPC client with endpoint fallback."""
import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import BitcoinConfig
from ...errors import ChainConnectionError, PermanentSubmissionError

logger = logging.getLogger(__name__)


class BitcoinClient:
    """Bitcoin Core RPC client with automatic endpoint fallback."""

    def __init__(self, config: BitcoinConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.confirmations = config.confirmations
        self.poll_interval = config.poll_interval
        self.current_rpc_index = 0
        self._auth = (
            aiohttp.BasicAuth(config.rpc_user, config.rpc_password)
            if config.rpc_user
            else None
        )

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints.

        A JSON-RPC error from a reachable node is the node's answer and is not
        retried elsewhere.
        """
        payload = {"jsonrpc": "1.0", "id": "bouncer", "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        auth=self._auth,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if result.get("error"):
                raise PermanentSubmissionError(
                    f"Bitcoin RPC {method} failed: {result['error']}"
                )
            return result.get("result")

        raise ChainConnectionError(f"All RPC endpoints failed. Last error: {last_error}")

    async def send_to_address(self, address: str, amount_btc: str) -> str:
        """Send ``amount_btc`` from the node wallet; returns the txid."""
        txid = await self.rpc_call("sendtoaddress", [address, float(amount_btc)])
        logger.info("Sent %s BTC to %s in tx %s", amount_btc, address, txid)
        return txid

    async def get_transaction(self, txid: str) -> dict[str, Any]:
        return await self.rpc_call("gettransaction", [txid])

    async def wait_for_confirmations(self, txid: str) -> int:
        """Poll until ``txid`` has the configured number of confirmations."""
        while True:
            tx = await self.get_transaction(txid)
            confirmations = int(tx.get("confirmations", 0))
            if confirmations >= self.confirmations:
                logger.info("Tx %s has %d confirmation(s)", txid, confirmations)
                return confirmations
            logger.debug("Tx %s has %d confirmation(s), waiting", txid, confirmations)
            await asyncio.sleep(self.poll_interval)
