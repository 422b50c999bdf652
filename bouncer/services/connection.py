"""Process-wide shared state chain connection."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..chains.state_chain import StateChainClient
from ..config import StateChainConfig
from ..errors import ChainConnectionError
from ..models import ConnectionState

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], Awaitable[StateChainClient]]


class ChainConnection:
    """Lazily connects once and hands the same client to every caller.

    The first ``get()`` starts the connection attempt and publishes it as a
    shared future; callers arriving while it is in flight await that future
    instead of opening their own websocket. A failed attempt is forgotten so
    the next ``get()`` starts over.
    """

    def __init__(self, endpoint: str, factory: ClientFactory) -> None:
        self.endpoint = endpoint
        self._factory = factory
        self._future: asyncio.Future[StateChainClient] | None = None
        self._state = ConnectionState.DISCONNECTED
        self.attempts = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    async def get(self) -> StateChainClient:
        future = self._future
        if future is not None and not self._reusable(future):
            self._future = None
            await self._close_stale(future)
            # another caller may have started a fresh attempt meanwhile
            future = self._future

        if future is None:
            self.attempts += 1
            self._state = ConnectionState.CONNECTING
            future = asyncio.ensure_future(self._factory())
            future.add_done_callback(self._on_settled)
            self._future = future

        # One waiter giving up must not cancel the attempt the others share.
        return await asyncio.shield(future)

    def _reusable(self, future: asyncio.Future[StateChainClient]) -> bool:
        if future.get_loop() is not asyncio.get_running_loop():
            return False
        if not future.done():
            return True
        if future.cancelled() or future.exception() is not None:
            return False
        return future.result().is_connected

    async def _close_stale(self, future: asyncio.Future[StateChainClient]) -> None:
        if not future.done() or future.cancelled() or future.exception() is not None:
            return
        logger.info("Replacing broken connection to %s", self.endpoint)
        try:
            await future.result().close()
        except Exception as e:
            logger.warning("Closing stale connection to %s failed: %s", self.endpoint, e)

    def _on_settled(self, future: asyncio.Future[StateChainClient]) -> None:
        if future.cancelled() or future.exception() is not None:
            self._state = ConnectionState.FAILED
            if self._future is future:
                self._future = None
            logger.warning(
                "Connection to %s failed: %s",
                self.endpoint,
                "cancelled" if future.cancelled() else future.exception(),
            )
        else:
            self._state = ConnectionState.READY

    async def close(self) -> None:
        future, self._future = self._future, None
        self._state = ConnectionState.DISCONNECTED
        if future is not None and future.done() and not future.cancelled():
            if future.exception() is None:
                await future.result().close()


def _client_factory(config: StateChainConfig) -> ClientFactory:
    async def connect() -> StateChainClient:
        client = StateChainClient(config)
        await client.connect()
        return client

    return connect


_shared: ChainConnection | None = None


def configure_connection(
    config: StateChainConfig, factory: ClientFactory | None = None
) -> ChainConnection:
    """Install the process-wide connection. Replaces any previous one."""
    global _shared
    _shared = ChainConnection(config.ws_endpoint, factory or _client_factory(config))
    return _shared


def reset_connection() -> None:
    global _shared
    _shared = None


async def get_connection() -> StateChainClient:
    """Return the shared state chain client, connecting on first use."""
    if _shared is None:
        raise ChainConnectionError("State chain connection has not been configured")
    return await _shared.get()
