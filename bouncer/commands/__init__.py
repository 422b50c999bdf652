"""Command bodies dispatched by the CLI."""
from .create_lp_pool import create_lp_pool
from .fund_btc import fund_btc
from .fund_flip import fund_flip
from .native_balance import native_balance
from .send_eth import send_eth
from .send_usdc import send_usdc

__all__ = [
    "create_lp_pool",
    "fund_btc",
    "fund_flip",
    "native_balance",
    "send_eth",
    "send_usdc",
]
