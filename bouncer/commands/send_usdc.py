"""Send USDC to an Ethereum address and confirm the balance moved."""
from __future__ import annotations

import logging

from ..assets import ASSET_DECIMALS, Asset, amount_to_fine_amount, fine_amount_to_amount
from ..chains.evm import EvmClient
from ..config import AppConfig
from ..errors import PermanentSubmissionError

logger = logging.getLogger(__name__)


async def send_usdc(
    address: str, amount: str, config: AppConfig, evm: EvmClient | None = None
) -> int:
    """Transfer ``amount`` USDC to ``address``; returns the new balance in base units."""
    decimals = ASSET_DECIMALS[Asset.USDC]
    fine_amount = amount_to_fine_amount(amount, decimals)
    evm = evm or EvmClient(config.ethereum)

    usdc = evm.contract_address("USDC")
    before = await evm.erc20_balance(usdc, address)
    await evm.erc20_transfer(usdc, address, fine_amount)
    after = await evm.erc20_balance(usdc, address)

    if after < before + fine_amount:
        raise PermanentSubmissionError(
            f"USDC balance of {address} is {fine_amount_to_amount(after, decimals)}, "
            f"expected at least {fine_amount_to_amount(before + fine_amount, decimals)}"
        )
    logger.info("Sent %s USDC to %s", amount, address)
    return after
