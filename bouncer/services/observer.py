"""One-shot chain event observation."""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, replace
from typing import Any, Generator

from ..chains.state_chain.follower import follow_blocks
from ..errors import SubscriptionError
from ..interfaces.chain import StateChain
from ..models import (
    BlockUpdate,
    ChainEvent,
    EventPredicate,
    SubscriptionState,
    event_name_matches,
    split_event_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserveOptions:
    """Knobs for a single watch.

    ``from_block`` is the first height inspected; by default the watch starts
    right after the best block at the moment it is established. With
    ``finalized`` a match only counts once its block is final. Setting
    ``cancel`` stops the watch cooperatively.
    """

    from_block: int | None = None
    finalized: bool = False
    poll_interval: float = 1.0
    cancel: asyncio.Event | None = None


class EventWatch:
    """Handle to a pending watch. Await it for the matching ChainEvent."""

    def __init__(self, event_name: str, task: asyncio.Task[ChainEvent], start: int) -> None:
        self.event_name = event_name
        self.start_block = start
        self._task = task
        self._state = SubscriptionState.PENDING
        task.add_done_callback(self._on_done)

    @property
    def state(self) -> SubscriptionState:
        return self._state

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    def __await__(self) -> Generator[Any, None, ChainEvent]:
        return self._task.__await__()

    async def __aenter__(self) -> EventWatch:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if not self._task.done():
            self.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

    def _on_done(self, task: asyncio.Task[ChainEvent]) -> None:
        if task.cancelled():
            self._state = SubscriptionState.CANCELLED
            logger.debug("Watch for %s cancelled", self.event_name)
        elif task.exception() is not None:
            self._state = SubscriptionState.FAILED
        else:
            self._state = SubscriptionState.MATCHED


async def observe_event(
    event_name: str,
    connection: StateChain,
    predicate: EventPredicate | None = None,
    options: ObserveOptions | None = None,
) -> EventWatch:
    """Start watching for ``event_name`` and return once the watch is live.

    Register the watch before issuing the call expected to trigger the event,
    then await the returned handle::

        watch = await observe_event("LiquidityPools:NewPoolCreated", chain, pred)
        async with watch:
            await submit_governance_extrinsic(call)
            event = await watch
    """
    split_event_name(event_name)
    options = options or ObserveOptions()

    start = options.from_block
    if start is None:
        start = (await connection.best_block()).number + 1

    task = asyncio.ensure_future(
        _watch(event_name, connection, predicate, options, start)
    )
    logger.debug("Watching for %s from block %d", event_name, start)
    return EventWatch(event_name, task, start)


async def _watch(
    event_name: str,
    connection: StateChain,
    predicate: EventPredicate | None,
    options: ObserveOptions,
    start: int,
) -> ChainEvent:
    # block hash -> first match seen there while the block was not yet final
    held: dict[str, ChainEvent] = {}

    updates = follow_blocks(
        connection,
        start,
        track_finality=options.finalized,
        poll_interval=options.poll_interval,
        cancel=options.cancel,
    )
    async with aclosing(updates):
        async for update in updates:
            match = _resolve(update, event_name, predicate, options.finalized, held)
            if match is not None:
                logger.info(
                    "Observed %s in block %d (%s)",
                    match.name,
                    match.block_number,
                    "finalized" if match.finalized else "best",
                )
                return match

    if options.cancel is not None and options.cancel.is_set():
        raise asyncio.CancelledError()
    raise SubscriptionError(f"Event stream ended while waiting for {event_name}")


def _resolve(
    update: BlockUpdate,
    event_name: str,
    predicate: EventPredicate | None,
    require_finality: bool,
    held: dict[str, ChainEvent],
) -> ChainEvent | None:
    if not update.finalized:
        match = _first_match(update.events, event_name, predicate)
        if match is None or not require_finality:
            return match
        held.setdefault(update.hash, match)
        logger.debug(
            "Holding %s from block %d until it is finalized", match.name, match.block_number
        )
        return None

    held_match = held.pop(update.hash, None)
    for block_hash, event in list(held.items()):
        if event.block_number <= update.number:
            logger.debug(
                "Discarding %s from superseded block %s", event.name, block_hash
            )
            del held[block_hash]

    if held_match is not None:
        return replace(held_match, finalized=True)
    return _first_match(update.events, event_name, predicate)


def _first_match(
    events: tuple[ChainEvent, ...], event_name: str, predicate: EventPredicate | None
) -> ChainEvent | None:
    for event in events:
        if not event_name_matches(event_name, event.name):
            continue
        if predicate is None or predicate(event):
            return event
    return None
