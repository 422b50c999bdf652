"""Print the native balance of an address on an external chain."""
from __future__ import annotations

from ..assets import ASSET_DECIMALS, Asset, Chain, fine_amount_to_amount
from ..chains.evm import EvmClient
from ..config import AppConfig
from ..errors import ValidationError


async def native_balance(
    chain: Chain, address: str, config: AppConfig, evm: EvmClient | None = None
) -> str:
    if chain is not Chain.ETHEREUM:
        raise ValidationError(f"Native balance queries are not supported on {chain.value}")

    evm = evm or EvmClient(config.ethereum)
    wei = await evm.native_balance(address)
    balance = fine_amount_to_amount(wei, ASSET_DECIMALS[Asset.ETH])
    print(balance)
    return balance
