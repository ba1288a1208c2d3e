"""Wallet validation utilities."""

import re

MIN_ADDRESS_LEN = 26

_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")


def is_valid_wallet(w: str) -> bool:
    """Return True if w looks like an Alephium address (base58, at least 26 chars)."""
    if not isinstance(w, str):
        return False
    w = w.strip()
    return len(w) >= MIN_ADDRESS_LEN and _BASE58_RE.match(w) is not None
