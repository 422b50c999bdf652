"""Block follower that turns head polling into an ordered stream of block updates."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import AsyncIterator

from ...errors import SubscriptionError
from ...interfaces.chain import StateChain
from ...models import BlockRef, BlockUpdate, ChainEvent

logger = logging.getLogger(__name__)


async def follow_blocks(
    chain: StateChain,
    start: int,
    *,
    track_finality: bool = False,
    poll_interval: float = 1.0,
    cancel: asyncio.Event | None = None,
) -> AsyncIterator[BlockUpdate]:
    """Yield every block from height ``start`` onwards, in height order.

    Best blocks are yielded with ``finalized=False`` as soon as they are seen.
    With ``track_finality`` the follower also yields each block again with
    ``finalized=True`` once the finalised head passes it, carrying the hash of
    the block that actually got finalised at that height. The generator stops
    quietly when ``cancel`` is set.
    """
    next_best = start
    next_final = start
    # best-block hash -> (height, events), kept until that height is final
    seen: dict[str, tuple[int, tuple[ChainEvent, ...]]] = {}

    while cancel is None or not cancel.is_set():
        best = await chain.best_block()
        while next_best <= best.number:
            block = await _block_at(chain, next_best)
            events = await chain.block_events(block)
            if track_finality:
                seen[block.hash] = (block.number, events)
            yield BlockUpdate(block.number, block.hash, False, events)
            next_best += 1

        if track_finality:
            finalized = await chain.finalized_block()
            while next_final <= finalized.number:
                block = await _block_at(chain, next_final)
                cached = seen.pop(block.hash, None)
                if cached is not None:
                    events = tuple(replace(e, finalized=True) for e in cached[1])
                else:
                    events = await chain.block_events(block, finalized=True)
                yield BlockUpdate(block.number, block.hash, True, events)
                next_final += 1
            next_best = max(next_best, next_final)
            for block_hash, (number, _) in list(seen.items()):
                if number <= finalized.number:
                    del seen[block_hash]

        if await _sleep_or_cancel(poll_interval, cancel):
            break

    logger.debug("Block follower stopped before height %d", next_best)


async def _block_at(chain: StateChain, number: int) -> BlockRef:
    block_hash = await chain.block_hash(number)
    if block_hash is None:
        raise SubscriptionError(f"No block hash for height {number}; stream is broken")
    return BlockRef(number, block_hash)


async def _sleep_or_cancel(delay: float, cancel: asyncio.Event | None) -> bool:
    """Sleep for ``delay``; return True if cancelled in the meantime."""
    if cancel is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True
