"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any, Callable, Iterable
from unittest.mock import MagicMock

import pytest

from bouncer.config import (
    AppConfig,
    BitcoinConfig,
    EthereumConfig,
    GovernanceConfig,
    StateChainConfig,
    TimeoutsConfig,
)
from bouncer.models import (
    BlockRef,
    Call,
    ChainEvent,
    ExtrinsicReceipt,
    ExtrinsicStatus,
    freeze,
)
from bouncer.services import connection


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_state_chain_config() -> StateChainConfig:
    return StateChainConfig(
        ws_endpoint="ws://127.0.0.1:9944", ss58_format=2112, poll_interval=0.01
    )


@pytest.fixture()
def sample_app_config(sample_state_chain_config: StateChainConfig) -> AppConfig:
    return AppConfig(
        state_chain=sample_state_chain_config,
        governance=GovernanceConfig(signer_uri="//Snowwhite"),
        ethereum=EthereumConfig(
            rpc_endpoint="http://127.0.0.1:8545",
            whale_key="0x" + "ab" * 32,
            contracts={
                "FLIP": "0x10C6E9530F1C1AF873a391030a1D9E8ed0630D26",
                "USDC": "0x1c11BD5B4d2F2b5cB4f5c1b7E4b3C3D7dBd1c5b0",
                "GATEWAY": "0xeEBe00Ac0756308ac4AaBfD76c05c4F3088B8883",
            },
        ),
        bitcoin=BitcoinConfig(
            rpc_endpoints=("http://127.0.0.1:8332",),
            rpc_user="flip",
            rpc_password="flip",
            poll_interval=0.01,
        ),
        timeouts=TimeoutsConfig(),
    )


SAMPLE_YAML = textwrap.dedent("""\
    state_chain:
      ws_endpoint: "ws://node.example.com:9944"
      ss58_format: 2112
      poll_interval: 0.5
    governance:
      signer_uri: "//Snowwhite"
    ethereum:
      rpc_endpoint: "http://eth.example.com:8545"
      whale_key: "0xkey"
      receipt_timeout: 30
      contracts:
        flip: "0xF1"
        USDC: "0xUS"
        GATEWAY: ""
    bitcoin:
      rpc_endpoints: ["http://btc1.example.com", "http://btc2.example.com"]
      rpc_user: user
      rpc_password: pass
      confirmations: 2
    timeouts:
      send_usdc: 25
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Scripted in-memory state chain
# ---------------------------------------------------------------------------


class FakeChain:
    """In-memory chain: tests append blocks, fork and finalise by hand."""

    endpoint = "ws://fake-node:9944"
    ss58_format = 2112

    def __init__(self) -> None:
        self.blocks: dict[int, str] = {0: "0x00"}
        self.block_records: dict[str, tuple[tuple[str, Any], ...]] = {"0x00": ()}
        self.best = 0
        self.finalized = 0
        self.storage: dict[tuple[str, str], Any] = {}
        self.nonces: list[int] = []
        self.nonce_calls = 0
        self.submissions: list[tuple[Any, int]] = []
        self.submit_errors: list[Exception] = []
        self.on_submit: Callable[[Any], None] | None = None
        self.fail_with: Exception | None = None
        self.is_connected = True

    # -- scripting --------------------------------------------------------

    def add_block(
        self, events: Iterable[tuple[str, Any]] = (), block_hash: str | None = None
    ) -> BlockRef:
        number = self.best + 1
        block_hash = block_hash or f"0x{number:02x}"
        self.blocks[number] = block_hash
        self.block_records[block_hash] = tuple(events)
        self.best = number
        return BlockRef(number, block_hash)

    def reorg(
        self, number: int, block_hash: str, events: Iterable[tuple[str, Any]] = ()
    ) -> None:
        self.blocks[number] = block_hash
        self.block_records[block_hash] = tuple(events)

    def finalize(self, number: int) -> None:
        self.finalized = number

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    # -- StateChain protocol ----------------------------------------------

    async def best_block(self) -> BlockRef:
        self._check()
        return BlockRef(self.best, self.blocks[self.best])

    async def finalized_block(self) -> BlockRef:
        self._check()
        return BlockRef(self.finalized, self.blocks[self.finalized])

    async def block_hash(self, number: int) -> str | None:
        self._check()
        return self.blocks.get(number)

    async def block_events(
        self, block: BlockRef, finalized: bool = False
    ) -> tuple[ChainEvent, ...]:
        self._check()
        return tuple(
            ChainEvent(
                name=name,
                data=freeze(data),
                block_number=block.number,
                block_hash=block.hash,
                finalized=finalized,
                index=index,
            )
            for index, (name, data) in enumerate(self.block_records.get(block.hash, ()))
        )

    async def query(
        self, module: str, storage_function: str, params: list[Any] | None = None
    ) -> Any:
        self._check()
        return self.storage.get((module, storage_function))

    async def account_nonce(self, address: str) -> int:
        self._check()
        self.nonce_calls += 1
        if self.nonces:
            return self.nonces.pop(0)
        return len(self.submissions)

    async def compose_call(self, call: Call) -> Call:
        self._check()
        return call

    async def submit(self, composed_call: Any, keypair: Any, nonce: int) -> ExtrinsicReceipt:
        self._check()
        self.submissions.append((composed_call, nonce))
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        if self.on_submit is not None:
            self.on_submit(composed_call)
        return ExtrinsicReceipt(
            extrinsic_hash=f"0xext{len(self.submissions)}",
            block_hash=self.blocks[self.best],
            status=ExtrinsicStatus.IN_BLOCK,
            nonce=nonce,
        )


@pytest.fixture()
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def shared_fake_chain(fake_chain: FakeChain, sample_state_chain_config: StateChainConfig):
    """Install ``fake_chain`` as the process-wide connection."""

    async def factory() -> FakeChain:
        return fake_chain

    connection.configure_connection(sample_state_chain_config, factory=factory)
    yield fake_chain
    connection.reset_connection()


@pytest.fixture()
def governance_signer() -> MagicMock:
    signer = MagicMock()
    signer.ss58_address = "cFGovernanceSigner"
    return signer
