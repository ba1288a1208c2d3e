"""
Explorer package: Alephium explorer backend REST API.

Address balances, transaction histories, supply and holder statistics.
"""

from alphiq_backend.explorer.client import (
    AddressInfo,
    ExplorerClient,
    ExplorerError,
    atto_to_alph,
)

__all__ = ["AddressInfo", "ExplorerClient", "ExplorerError", "atto_to_alph"]
