"""State chain RPC client on top of substrate-interface."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, TypeVar

from substrateinterface import Keypair, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from ...config import StateChainConfig
from ...errors import (
    ChainConnectionError,
    PermanentSubmissionError,
    SubmissionError,
    TransientSubmissionError,
)
from ...models import (
    BlockRef,
    Call,
    ChainEvent,
    ExtrinsicReceipt,
    ExtrinsicStatus,
    freeze,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Pool rejections that a fresh nonce (or simply a second attempt) can clear.
TRANSIENT_REJECTIONS = (
    "Priority is too low",
    "Transaction is outdated",
    "Transaction is temporarily banned",
    "Stale",
)

_TRANSPORT_ERRORS = (WebSocketException, OSError)


def classify_rejection(exc: SubstrateRequestException) -> SubmissionError:
    """Map an RPC rejection onto the transient/permanent split."""
    detail = exc.args[0] if exc.args else exc
    if isinstance(detail, Mapping):
        text = " ".join(str(detail.get(k, "")) for k in ("message", "data"))
    else:
        text = str(detail)

    if any(marker.lower() in text.lower() for marker in TRANSIENT_REJECTIONS):
        return TransientSubmissionError(f"Extrinsic rejected: {text.strip()}")
    return PermanentSubmissionError(f"Extrinsic rejected: {text.strip()}")


def event_from_record(
    record: Mapping[str, Any], block: BlockRef, finalized: bool, index: int
) -> ChainEvent:
    """Build a ChainEvent from a decoded ``System.Events`` record."""
    event = record.get("event") or {}
    module = record.get("module_id") or event.get("module_id", "")
    method = record.get("event_id") or event.get("event_id", "")
    attributes = record.get("attributes", event.get("attributes"))

    if attributes is None:
        data: Mapping[str, Any] = {}
    elif isinstance(attributes, Mapping):
        data = attributes
    elif isinstance(attributes, (list, tuple)):
        data = {str(i): value for i, value in enumerate(attributes)}
    else:
        data = {"0": attributes}

    return ChainEvent(
        name=f"{module}:{method}",
        data=freeze(data),
        block_number=block.number,
        block_hash=block.hash,
        finalized=finalized,
        index=index,
    )


class StateChainClient:
    """Async facade over a blocking substrate-interface websocket.

    All library calls run in a worker thread, one at a time: the websocket
    underneath is not safe for concurrent use.
    """

    def __init__(self, config: StateChainConfig) -> None:
        self._endpoint = config.ws_endpoint
        self.ss58_format = config.ss58_format
        self._substrate: SubstrateInterface | None = None
        self._lock = asyncio.Lock()
        self._broken = False

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def is_connected(self) -> bool:
        return self._substrate is not None and not self._broken

    async def connect(self) -> None:
        """Open the websocket. Raises ChainConnectionError when unreachable."""
        logger.info("Connecting to state chain at %s", self._endpoint)
        try:
            self._substrate = await asyncio.to_thread(
                SubstrateInterface,
                url=self._endpoint,
                ss58_format=self.ss58_format,
                auto_reconnect=False,
            )
        except _TRANSPORT_ERRORS as e:
            raise ChainConnectionError(
                f"Cannot connect to state chain at {self._endpoint}: {e}"
            ) from e
        self._broken = False
        logger.info("Connected to state chain at %s", self._endpoint)

    async def close(self) -> None:
        if self._substrate is not None:
            substrate, self._substrate = self._substrate, None
            await asyncio.to_thread(substrate.close)

    async def _call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(substrate, *args, **kwargs)`` in a worker thread."""
        substrate = self._substrate
        if substrate is None or self._broken:
            raise ChainConnectionError(f"Not connected to {self._endpoint}")

        async with self._lock:
            try:
                return await asyncio.to_thread(fn, substrate, *args, **kwargs)
            except _TRANSPORT_ERRORS as e:
                if isinstance(e, ChainConnectionError):
                    raise
                self._broken = True
                raise ChainConnectionError(
                    f"Connection to {self._endpoint} dropped: {e}"
                ) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query(
        self, module: str, storage_function: str, params: list[Any] | None = None
    ) -> Any:
        """Read a storage item and return its decoded value (None if absent)."""
        result = await self._call(
            lambda s: s.query(module, storage_function, params or [])
        )
        return result.value if result is not None else None

    async def best_block(self) -> BlockRef:
        return await self._call(_head, False)

    async def finalized_block(self) -> BlockRef:
        return await self._call(_head, True)

    async def block_hash(self, number: int) -> str | None:
        return await self._call(lambda s: s.get_block_hash(number))

    async def block_events(
        self, block: BlockRef, finalized: bool = False
    ) -> tuple[ChainEvent, ...]:
        records = await self._call(
            lambda s: [record.value for record in s.get_events(block.hash)]
        )
        return tuple(
            event_from_record(record, block, finalized, index)
            for index, record in enumerate(records)
        )

    async def account_nonce(self, address: str) -> int:
        return int(await self._call(lambda s: s.get_account_nonce(address)))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def compose_call(self, call: Call) -> Any:
        return await self._call(
            lambda s: s.compose_call(
                call_module=call.module,
                call_function=call.function,
                call_params=dict(call.params),
            )
        )

    async def submit(self, composed_call: Any, keypair: Keypair, nonce: int) -> ExtrinsicReceipt:
        """Sign, submit and wait for in-block inclusion."""
        try:
            return await self._call(_submit_and_watch, composed_call, keypair, nonce)
        except SubstrateRequestException as e:
            raise classify_rejection(e) from e


def _head(substrate: SubstrateInterface, finalized: bool) -> BlockRef:
    block_hash = (
        substrate.get_chain_finalised_head() if finalized else substrate.get_chain_head()
    )
    return BlockRef(substrate.get_block_number(block_hash), block_hash)


def _submit_and_watch(
    substrate: SubstrateInterface, composed_call: Any, keypair: Keypair, nonce: int
) -> ExtrinsicReceipt:
    extrinsic = substrate.create_signed_extrinsic(
        call=composed_call, keypair=keypair, nonce=nonce
    )
    receipt = substrate.submit_extrinsic(extrinsic, wait_for_inclusion=True)

    if not receipt.is_success:
        raise PermanentSubmissionError(
            f"Extrinsic {receipt.extrinsic_hash} failed in block "
            f"{receipt.block_hash}: {receipt.error_message}"
        )
    return ExtrinsicReceipt(
        extrinsic_hash=receipt.extrinsic_hash,
        block_hash=receipt.block_hash,
        status=ExtrinsicStatus.IN_BLOCK,
        nonce=nonce,
    )
