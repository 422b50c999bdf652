"""Send BTC from the node wallet and wait for it to confirm."""
from __future__ import annotations

from ..assets import ASSET_DECIMALS, Asset, amount_to_fine_amount, fine_amount_to_amount
from ..chains.bitcoin import BitcoinClient
from ..config import AppConfig


async def fund_btc(
    address: str, amount: str, config: AppConfig, client: BitcoinClient | None = None
) -> str:
    decimals = ASSET_DECIMALS[Asset.BTC]
    normalized = fine_amount_to_amount(amount_to_fine_amount(amount, decimals), decimals)

    client = client or BitcoinClient(config.bitcoin)
    txid = await client.send_to_address(address, normalized)
    await client.wait_for_confirmations(txid)
    return txid
