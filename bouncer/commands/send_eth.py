"""Send native ETH and confirm the balance moved."""
from __future__ import annotations

import logging

from ..assets import ASSET_DECIMALS, Asset, amount_to_fine_amount, fine_amount_to_amount
from ..chains.evm import EvmClient
from ..config import AppConfig
from ..errors import PermanentSubmissionError

logger = logging.getLogger(__name__)


async def send_eth(
    address: str, amount: str, config: AppConfig, evm: EvmClient | None = None
) -> int:
    """Send ``amount`` ETH to ``address``; returns the new balance in wei."""
    decimals = ASSET_DECIMALS[Asset.ETH]
    fine_amount = amount_to_fine_amount(amount, decimals)
    evm = evm or EvmClient(config.ethereum)

    before = await evm.native_balance(address)
    await evm.send_native(address, fine_amount)
    after = await evm.native_balance(address)

    if after < before + fine_amount:
        raise PermanentSubmissionError(
            f"Balance of {address} is {fine_amount_to_amount(after, decimals)} ETH, "
            f"expected at least {fine_amount_to_amount(before + fine_amount, decimals)}"
        )
    logger.info(
        "Sent %s ETH to %s (balance now %s)",
        amount,
        address,
        fine_amount_to_amount(after, decimals),
    )
    return after
