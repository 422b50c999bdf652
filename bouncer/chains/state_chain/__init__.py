from .accounts import resolve_account
from .client import StateChainClient
from .follower import follow_blocks

__all__ = ["StateChainClient", "follow_blocks", "resolve_account"]
