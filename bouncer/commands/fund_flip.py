"""Fund a state chain account with FLIP through the Ethereum gateway."""
from __future__ import annotations

import logging

from ..assets import ASSET_DECIMALS, Asset, amount_to_fine_amount
from ..chains.evm import EvmClient
from ..chains.state_chain import resolve_account
from ..config import AppConfig
from ..models import ChainEvent
from ..services import ObserveOptions, get_connection, observe_event

logger = logging.getLogger(__name__)


async def fund_flip(
    account: str, amount: str, config: AppConfig, evm: EvmClient | None = None
) -> ChainEvent:
    """Fund ``account`` (hex public key or ss58) with ``amount`` FLIP.

    Returns the ``Funding:Funded`` event confirming the funds arrived.
    """
    public_key, ss58_address = resolve_account(account, config.state_chain.ss58_format)
    fine_amount = amount_to_fine_amount(amount, ASSET_DECIMALS[Asset.FLIP])

    evm = evm or EvmClient(config.ethereum)
    flip = evm.contract_address("FLIP")
    gateway = evm.contract_address("GATEWAY")

    chain = await get_connection()
    watch = await observe_event(
        "Funding:Funded",
        chain,
        lambda event: event.data.get("account_id") == ss58_address,
        ObserveOptions(poll_interval=config.state_chain.poll_interval),
    )
    async with watch:
        logger.info("Approving %s FLIP to the state chain gateway", amount)
        await evm.erc20_approve(flip, gateway, fine_amount)
        logger.info("Funding %s FLIP to account %s", amount, ss58_address)
        await evm.fund_state_chain_account(gateway, public_key, fine_amount)
        event = await watch

    logger.info("Account %s funded with %s FLIP", ss58_address, amount)
    return event
