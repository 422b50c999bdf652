"""State chain protocol: the RPC surface the core primitives rely on."""
from typing import Any, Protocol

from ..models import BlockRef, Call, ChainEvent, ExtrinsicReceipt


class StateChain(Protocol):
    """Abstract interface for state chain queries, blocks and submission."""

    @property
    def endpoint(self) -> str: ...

    async def query(
        self, module: str, storage_function: str, params: list[Any] | None = None
    ) -> Any: ...

    async def best_block(self) -> BlockRef: ...

    async def finalized_block(self) -> BlockRef: ...

    async def block_hash(self, number: int) -> str | None: ...

    async def block_events(
        self, block: BlockRef, finalized: bool = False
    ) -> tuple[ChainEvent, ...]: ...

    async def account_nonce(self, address: str) -> int: ...

    async def compose_call(self, call: Call) -> Any: ...

    async def submit(
        self, composed_call: Any, keypair: Any, nonce: int
    ) -> ExtrinsicReceipt: ...
