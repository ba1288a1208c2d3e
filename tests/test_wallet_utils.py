"""
Pytest tests for address format validation.
"""

from __future__ import annotations

import pytest

from alphiq_backend.utils.wallet_utils import is_valid_wallet


@pytest.mark.parametrize(
    "address",
    [
        "1DrDyTr9RpRsQnDnXo2YRiPzPW4ooHX5LLoqXrqfMrpQH",
        "  1HMSFdhPpvPybfWLZiHeBxVbnfTc2L6gkVPHfuJWoZrMA  ",
        "2" * 26,
    ],
)
def test_valid_addresses(address):
    assert is_valid_wallet(address) is True


@pytest.mark.parametrize(
    "address",
    ["", "1" * 25, "0" * 30, "O" * 30, "I" * 30, "l" * 30, "1DrDyTr9RpRs-QnDnXo2YRiPzPW4ooHX5", None, 123],
)
def test_invalid_addresses(address):
    assert is_valid_wallet(address) is False
