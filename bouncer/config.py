"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StateChainConfig:
    ws_endpoint: str = "ws://127.0.0.1:9944"
    ss58_format: int = 2112
    poll_interval: float = 1.0


@dataclass(frozen=True)
class GovernanceConfig:
    signer_uri: str = ""
    call_module: str = "Governance"
    call_function: str = "propose_governance_extrinsic"


@dataclass(frozen=True)
class EthereumConfig:
    rpc_endpoint: str = "http://127.0.0.1:8545"
    whale_key: str = ""
    contracts: dict[str, str] = field(default_factory=dict)
    receipt_timeout: float = 60.0


@dataclass(frozen=True)
class BitcoinConfig:
    rpc_endpoints: tuple[str, ...] = ("http://127.0.0.1:8332",)
    rpc_user: str = ""
    rpc_password: str = ""
    rpc_timeout: int = 30
    confirmations: int = 1
    poll_interval: float = 1.0


@dataclass(frozen=True)
class TimeoutsConfig:
    create_lp_pool: float = 120.0
    fund_flip: float = 120.0
    send_usdc: float = 20.0
    send_eth: float = 60.0
    fund_btc: float = 120.0
    native_balance: float = 20.0


@dataclass(frozen=True)
class AppConfig:
    state_chain: StateChainConfig = field(default_factory=StateChainConfig)
    governance: GovernanceConfig = field(default_factory=GovernanceConfig)
    ethereum: EthereumConfig = field(default_factory=EthereumConfig)
    bitcoin: BitcoinConfig = field(default_factory=BitcoinConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} / ${VAR:-default} with environment values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), value
        )
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_state_chain(raw: dict[str, Any]) -> StateChainConfig:
    return StateChainConfig(
        ws_endpoint=raw.get("ws_endpoint", StateChainConfig.ws_endpoint),
        ss58_format=int(raw.get("ss58_format", 2112)),
        poll_interval=float(raw.get("poll_interval", 1.0)),
    )


def _build_governance(raw: dict[str, Any]) -> GovernanceConfig:
    return GovernanceConfig(
        signer_uri=raw.get("signer_uri", ""),
        call_module=raw.get("call_module", GovernanceConfig.call_module),
        call_function=raw.get("call_function", GovernanceConfig.call_function),
    )


def _build_ethereum(raw: dict[str, Any]) -> EthereumConfig:
    return EthereumConfig(
        rpc_endpoint=raw.get("rpc_endpoint", EthereumConfig.rpc_endpoint),
        whale_key=raw.get("whale_key", ""),
        contracts={k.upper(): v for k, v in raw.get("contracts", {}).items() if v},
        receipt_timeout=float(raw.get("receipt_timeout", 60.0)),
    )


def _build_bitcoin(raw: dict[str, Any]) -> BitcoinConfig:
    return BitcoinConfig(
        rpc_endpoints=tuple(raw.get("rpc_endpoints", BitcoinConfig.rpc_endpoints)),
        rpc_user=raw.get("rpc_user", ""),
        rpc_password=raw.get("rpc_password", ""),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        confirmations=int(raw.get("confirmations", 1)),
        poll_interval=float(raw.get("poll_interval", 1.0)),
    )


def _build_timeouts(raw: dict[str, Any]) -> TimeoutsConfig:
    defaults = TimeoutsConfig()
    return TimeoutsConfig(
        **{
            name: float(raw.get(name, getattr(defaults, name)))
            for name in TimeoutsConfig.__dataclass_fields__
        }
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        state_chain=_build_state_chain(raw.get("state_chain", {})),
        governance=_build_governance(raw.get("governance", {})),
        ethereum=_build_ethereum(raw.get("ethereum", {})),
        bitcoin=_build_bitcoin(raw.get("bitcoin", {})),
        timeouts=_build_timeouts(raw.get("timeouts", {})),
    )

    _validate(cfg)
    logger.debug("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.state_chain.ws_endpoint:
        raise ValueError("state_chain.ws_endpoint must be set")
    if cfg.state_chain.poll_interval <= 0:
        raise ValueError("state_chain.poll_interval must be positive")

    if not cfg.bitcoin.rpc_endpoints:
        raise ValueError("At least one bitcoin RPC endpoint must be configured")
    if cfg.bitcoin.poll_interval <= 0:
        raise ValueError("bitcoin.poll_interval must be positive")

    for name in TimeoutsConfig.__dataclass_fields__:
        if getattr(cfg.timeouts, name) <= 0:
            raise ValueError(f"timeouts.{name} must be positive")
