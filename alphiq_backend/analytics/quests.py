"""Quest submission rules."""

from __future__ import annotations

from typing import Any

from alphiq_backend.core.exceptions import InvalidSubmissionError


def has_proof_data(proof_data: Any) -> bool:
    """True when at least one section of the participation data is a non-empty object or list."""
    if not isinstance(proof_data, dict):
        return False
    return any(isinstance(section, (dict, list)) and len(section) > 0 for section in proof_data.values())


def prepare_submission(
    address: str | None,
    proof_url: str | None,
    proof_data: Any | None,
) -> tuple[str, str | None, Any | None]:
    """
    Normalize a submission payload to (address, proof_url, proof_data).

    proof_data is kept only when some section carries data. Raises
    InvalidSubmissionError when the address is missing or no proof remains.
    """
    address = (address or "").strip()
    if not address:
        raise InvalidSubmissionError("Address is required")
    url = (proof_url or "").strip() or None
    data = proof_data if has_proof_data(proof_data) else None
    if url is None and data is None:
        raise InvalidSubmissionError("A proof URL or participation data is required")
    return address, url, data
