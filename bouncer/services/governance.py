"""Governance extrinsic submission with a single transient retry."""
from __future__ import annotations

import logging
from dataclasses import replace

from substrateinterface import Keypair

from ..config import GovernanceConfig
from ..errors import TransientSubmissionError, ValidationError
from ..interfaces.chain import StateChain
from ..models import Call, Extrinsic, ExtrinsicReceipt, ExtrinsicStatus
from .connection import get_connection

logger = logging.getLogger(__name__)


def governance_keypair(config: GovernanceConfig, ss58_format: int | None = None) -> Keypair:
    """Build the governance signer from its secret URI (mnemonic or //Dev path)."""
    if not config.signer_uri:
        raise ValidationError("governance.signer_uri is not configured")
    if ss58_format is None:
        return Keypair.create_from_uri(config.signer_uri)
    return Keypair.create_from_uri(config.signer_uri, ss58_format=ss58_format)


class GovernanceSubmitter:
    """Wraps calls in a governance proposal, signs and submits them.

    ``attempts`` keeps one Extrinsic per submission attempt, carrying the
    status it reached (InBlock on success, Failed otherwise).
    """

    def __init__(
        self, chain: StateChain, signer: Keypair, config: GovernanceConfig | None = None
    ) -> None:
        self._chain = chain
        self._signer = signer
        self._config = config or GovernanceConfig()
        self.attempts: list[Extrinsic] = []

    async def submit(self, call: Call) -> ExtrinsicReceipt:
        """Submit ``call`` under governance and wait for in-block inclusion.

        A transient rejection (nonce clash, low priority) is retried exactly
        once with a freshly fetched nonce; the second outcome is final.
        """
        try:
            return await self._submit_once(call)
        except TransientSubmissionError as e:
            logger.warning(
                "Transient failure submitting %s (%s); retrying once with a fresh nonce",
                call,
                e,
            )
        return await self._submit_once(call)

    async def _submit_once(self, call: Call) -> ExtrinsicReceipt:
        inner = await self._chain.compose_call(call)
        proposal = await self._chain.compose_call(
            Call(self._config.call_module, self._config.call_function, {"call": inner})
        )
        nonce = await self._chain.account_nonce(self._signer.ss58_address)
        self.attempts.append(
            Extrinsic(call=call, nonce=nonce, signer=self._signer.ss58_address)
        )

        extrinsic = self._advance(ExtrinsicStatus.SUBMITTED)
        logger.info(
            "Submitting governance extrinsic %s (signer %s, nonce %d)",
            extrinsic.call,
            extrinsic.signer,
            extrinsic.nonce,
        )
        try:
            receipt = await self._chain.submit(proposal, self._signer, nonce)
        except Exception:
            self._advance(ExtrinsicStatus.FAILED)
            raise

        self._advance(receipt.status)
        logger.info(
            "Governance extrinsic %s included in block %s", call, receipt.block_hash
        )
        return receipt

    def _advance(self, status: ExtrinsicStatus) -> Extrinsic:
        self.attempts[-1] = replace(self.attempts[-1], status=status)
        return self.attempts[-1]


async def submit_governance_extrinsic(
    call: Call,
    connection: StateChain | None = None,
    signer: Keypair | None = None,
    *,
    config: GovernanceConfig | None = None,
) -> ExtrinsicReceipt:
    """Submit ``call`` as a governance proposal over the shared connection.

    Without an explicit ``signer`` the keypair is derived from
    ``config.signer_uri``.
    """
    config = config or GovernanceConfig()
    chain = connection or await get_connection()
    if signer is None:
        signer = governance_keypair(config, getattr(chain, "ss58_format", None))
    return await GovernanceSubmitter(chain, signer, config).submit(call)
