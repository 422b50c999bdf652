"""Create a USDC-quoted liquidity pool through governance."""
from __future__ import annotations

import logging
from fractions import Fraction
from typing import Mapping

from ..assets import ASSET_DECIMALS, Asset, state_chain_name
from ..config import AppConfig
from ..errors import ValidationError
from ..models import Call, ChainEvent
from ..services import ObserveOptions, get_connection, observe_event
from ..services.governance import submit_governance_extrinsic

logger = logging.getLogger(__name__)

POOL_FEE_HUNDREDTH_PIPS = 20


def initial_pool_price(asset: Asset, price_in_usdc: str | float) -> int:
    """Fixed-point (Q128) price of one base unit of ``asset`` in USDC base units."""
    try:
        price = Fraction(str(price_in_usdc))
    except ValueError:
        raise ValidationError(f"Invalid price: {price_in_usdc!r}") from None
    if price <= 0:
        raise ValidationError(f"Price must be positive, got {price_in_usdc}")

    shift = ASSET_DECIMALS[asset] - ASSET_DECIMALS[Asset.USDC]
    return round(price / Fraction(10) ** shift * 2**128)


async def create_lp_pool(asset: Asset, initial_price: str, config: AppConfig) -> bool:
    """Create the ``asset``/USDC pool unless it already exists.

    Returns True when a pool was created, False when one was already there.
    """
    if asset is Asset.USDC:
        raise ValidationError("USDC is the quote asset and cannot have its own pool")

    chain = await get_connection()
    base = state_chain_name(asset)
    quote = state_chain_name(Asset.USDC)

    existing = await chain.query(
        "LiquidityPools", "Pools", [{"assets": {"base": base, "quote": quote}}]
    )
    if existing is not None:
        logger.info("%s pool already exists, nothing to do", asset.value)
        return False

    price = initial_pool_price(asset, initial_price)
    logger.info(
        "Setting up %s pool with an initial price of %s USDC per %s",
        asset.value,
        initial_price,
        asset.value,
    )

    def is_our_pool(event: ChainEvent) -> bool:
        base_asset = event.data.get("base_asset", "")
        if isinstance(base_asset, Mapping):
            base_asset = next(iter(base_asset), "")
        return str(base_asset).upper() == asset.value

    watch = await observe_event(
        "LiquidityPools:NewPoolCreated",
        chain,
        is_our_pool,
        ObserveOptions(poll_interval=config.state_chain.poll_interval),
    )
    async with watch:
        await submit_governance_extrinsic(
            Call(
                "LiquidityPools",
                "new_pool",
                {
                    "base_asset": base,
                    "quote_asset": quote,
                    "fee_hundredth_pips": POOL_FEE_HUNDREDTH_PIPS,
                    "initial_price": price,
                },
            ),
            connection=chain,
            config=config.governance,
        )
        await watch

    logger.info("%s pool created", asset.value)
    return True
