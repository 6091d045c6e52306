"""Safe Wallet storage layer -- async SQLite database."""

from safe_wallet.storage.database import Database, get_database

__all__ = ["Database", "get_database"]
