"""State chain account id helpers (hex public key <-> ss58)."""
from __future__ import annotations

import re

from substrateinterface.utils.ss58 import ss58_decode, ss58_encode

from ...errors import ValidationError

_PUBKEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def resolve_account(account: str, ss58_format: int) -> tuple[bytes, str]:
    """Return ``(public key bytes, ss58 address)`` for a hex key or ss58 address."""
    account = account.strip()
    if _PUBKEY_RE.match(account):
        public_key = account[2:] if account.startswith("0x") else account
    else:
        try:
            public_key = ss58_decode(account)
        except ValueError as e:
            raise ValidationError(f"Invalid account id {account!r}: {e}") from e

    return bytes.fromhex(public_key), ss58_encode(public_key, ss58_format=ss58_format)
