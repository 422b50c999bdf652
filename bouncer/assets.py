"""Asset and chain tables plus decimal amount shifting."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum

from .errors import ValidationError


class Asset(str, Enum):
    FLIP = "FLIP"
    USDC = "USDC"
    ETH = "ETH"
    DOT = "DOT"
    BTC = "BTC"


class Chain(str, Enum):
    ETHEREUM = "Ethereum"
    POLKADOT = "Polkadot"
    BITCOIN = "Bitcoin"


ASSET_DECIMALS: dict[Asset, int] = {
    Asset.FLIP: 18,
    Asset.USDC: 6,
    Asset.ETH: 18,
    Asset.DOT: 10,
    Asset.BTC: 8,
}


def parse_asset(value: str) -> Asset:
    try:
        return Asset(value.strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown asset: {value!r}") from None


def parse_chain(value: str) -> Chain:
    for chain in Chain:
        if chain.value.lower() == value.strip().lower():
            return chain
    raise ValidationError(f"Unknown chain: {value!r}")


def state_chain_name(asset: Asset) -> str:
    """Enum variant name used by the runtime, e.g. ``Eth`` for ETH."""
    return asset.value.capitalize()


def amount_to_fine_amount(amount: str | int | float | Decimal, decimals: int) -> int:
    """Convert a human amount ("1.5") into base units (1.5 * 10**decimals)."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {amount!r}") from None
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Invalid amount: {amount!r}")

    fine = value.scaleb(decimals)
    if fine != fine.to_integral_value():
        raise ValidationError(
            f"Amount {amount} has more than {decimals} decimal places"
        )
    return int(fine)


def fine_amount_to_amount(fine_amount: int | str, decimals: int) -> str:
    """Convert base units back into a plain decimal string."""
    value = Decimal(int(fine_amount)).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
