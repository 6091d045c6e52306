"""Ledger Service interface and the local SQLite implementation."""

from safe_wallet.ledger.base import LedgerService
from safe_wallet.ledger.local import LocalLedger

__all__ = ["LedgerService", "LocalLedger"]
