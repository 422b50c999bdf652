"""Data models, all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .errors import ValidationError


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


class SubscriptionState(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ExtrinsicStatus(str, Enum):
    BUILT = "built"
    SUBMITTED = "submitted"
    IN_BLOCK = "in_block"
    FINALIZED = "finalized"
    FAILED = "failed"


def freeze(value: Any) -> Any:
    """Turn a decoded payload into a read-only tree.

    Mappings become read-only mappings and lists/tuples become tuples, all the
    way down. Scalars are returned unchanged.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def split_event_name(name: str) -> tuple[str, str]:
    """Split ``Module:Event`` (``Module.Event`` is accepted too)."""
    for sep in (":", "."):
        if sep in name:
            module, event = name.split(sep, 1)
            if module and event:
                return module, event
    raise ValidationError(f"Event name must look like 'Module:Event', got {name!r}")


def event_name_matches(pattern: str, name: str) -> bool:
    """Module compared case-insensitively, event exactly."""
    p_module, p_event = split_event_name(pattern)
    module, event = split_event_name(name)
    return p_module.lower() == module.lower() and p_event == event


@dataclass(frozen=True)
class ChainEvent:
    """A single event emitted by the state chain."""

    name: str
    data: Mapping[str, Any]
    block_number: int
    block_hash: str
    finalized: bool = False
    index: int = 0

    @property
    def module(self) -> str:
        return split_event_name(self.name)[0]

    @property
    def method(self) -> str:
        return split_event_name(self.name)[1]


EventPredicate = Callable[[ChainEvent], bool]


@dataclass(frozen=True)
class BlockUpdate:
    """One block delivered by the follower, best or finalised."""

    number: int
    hash: str
    finalized: bool
    events: tuple[ChainEvent, ...] = ()


@dataclass(frozen=True)
class BlockRef:
    number: int
    hash: str


@dataclass(frozen=True)
class Call:
    """An unsigned runtime call: ``module.function(**params)``."""

    module: str
    function: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.module}.{self.function}"


@dataclass(frozen=True)
class Extrinsic:
    """A signed call for one submission attempt."""

    call: Call
    nonce: int
    signer: str
    status: ExtrinsicStatus = ExtrinsicStatus.BUILT


@dataclass(frozen=True)
class ExtrinsicReceipt:
    extrinsic_hash: str
    block_hash: str | None
    status: ExtrinsicStatus
    nonce: int | None = None
