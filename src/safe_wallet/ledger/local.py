"""Local Ledger Service backed by SQLite.

Stands in for the network: it stores wallet containers, their spendable
balances and the coin balances they point at, and applies coin movements
atomically. XOR names are random 32-byte identifiers.
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from pathlib import Path

from safe_wallet.errors import LedgerServiceError
from safe_wallet.storage.database import Database, get_database
from safe_wallet.wallet.keys import derive_public_key
from safe_wallet.wallet.models import KeyPair, SecretKey, SpendableBalance, Wallet

logger = logging.getLogger("safe_wallet.ledger.local")


def _new_xorname() -> str:
    return secrets.token_hex(32)


@contextmanager
def _storage_errors():
    try:
        yield
    except sqlite3.Error as exc:
        raise LedgerServiceError(f"Ledger storage failure: {exc}") from exc


def _public_key_of(secret_key: SecretKey) -> str:
    try:
        return derive_public_key(secret_key)
    except ValueError as exc:
        raise LedgerServiceError(f"Invalid secret key: {exc}") from exc


def _to_decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise LedgerServiceError(f"Corrupt coin balance value '{value}'") from exc


class LocalLedger:
    """SQLite implementation of :class:`~safe_wallet.ledger.base.LedgerService`."""

    def __init__(self, db: Database) -> None:
        self.db = db

    @classmethod
    def at(cls, path: Path) -> LocalLedger:
        return cls(get_database(path))

    async def __aenter__(self) -> LocalLedger:
        with _storage_errors():
            await self.db.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.db.close()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _wallet_exists(self, location: str) -> bool:
        with _storage_errors():
            row = await self.db.fetch_one(
                "SELECT xorname FROM wallets WHERE xorname = ?", (location,)
            )
        return row is not None

    async def _coin_balance(self, location: str) -> dict | None:
        with _storage_errors():
            return await self.db.fetch_one(
                "SELECT xorname, public_key, balance FROM coin_balances WHERE xorname = ?",
                (location,),
            )

    async def _require_coin_balance(self, location: str) -> dict:
        coin = await self._coin_balance(location)
        if coin is None:
            raise LedgerServiceError(f"No coin balance found at XOR name \"{location}\"")
        return coin

    async def _spendable_coin(self, location: str) -> dict:
        """Resolve *location* to the coin balance it spends from or credits.

        A coin-balance location resolves to itself; a wallet resolves to its
        default spendable balance.
        """
        coin = await self._coin_balance(location)
        if coin is not None:
            return coin
        wallet = await self.wallet_get(location)
        default = wallet.default
        if default is None:
            raise LedgerServiceError(
                f"Wallet at XOR name \"{location}\" has no default spendable balance"
            )
        return await self._require_coin_balance(default.key_pair_location)

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def wallet_create(self) -> str:
        xorname = _new_xorname()
        with _storage_errors():
            await self.db.execute("INSERT INTO wallets (xorname) VALUES (?)", (xorname,))
        logger.info(f"Wallet created at {xorname}")
        return xorname

    async def wallet_get(self, location: str) -> Wallet:
        if not await self._wallet_exists(location):
            raise LedgerServiceError(f"No wallet found at XOR name \"{location}\"")
        with _storage_errors():
            rows = await self.db.fetch_all(
                "SELECT name, is_default, key_pair_location FROM spendable_balances "
                "WHERE wallet = ? ORDER BY created_at, rowid",
                (location,),
            )
        return Wallet(
            location=location,
            balances=[
                SpendableBalance(
                    name=r["name"],
                    is_default=bool(r["is_default"]),
                    key_pair_location=r["key_pair_location"],
                )
                for r in rows
            ],
        )

    async def wallet_balance(self, location: str, secret_key: SecretKey) -> Decimal:
        public_key = _public_key_of(secret_key)

        if await self._wallet_exists(location):
            with _storage_errors():
                rows = await self.db.fetch_all(
                    "SELECT c.balance FROM spendable_balances s "
                    "JOIN coin_balances c ON c.xorname = s.key_pair_location "
                    "WHERE s.wallet = ?",
                    (location,),
                )
            return sum((_to_decimal(r["balance"]) for r in rows), Decimal(0))

        coin = await self._coin_balance(location)
        if coin is None:
            raise LedgerServiceError(f"Nothing found at XOR name \"{location}\"")
        if coin["public_key"] != public_key:
            raise LedgerServiceError(
                f"Secret key does not match the coin balance at XOR name \"{location}\""
            )
        return _to_decimal(coin["balance"])

    async def wallet_add(
        self,
        location: str,
        name: str,
        is_default: bool,
        key_pair: KeyPair,
        key_pair_location: str,
    ) -> None:
        wallet = await self.wallet_get(location)
        coin = await self._require_coin_balance(key_pair_location)
        if coin["public_key"] != key_pair.public_key:
            raise LedgerServiceError(
                f"Public key does not match the coin balance at XOR name \"{key_pair_location}\""
            )
        if _public_key_of(key_pair.secret_key) != key_pair.public_key:
            raise LedgerServiceError("Secret key does not correspond to the public key")

        try:
            wallet.insert(
                SpendableBalance(
                    name=name, is_default=is_default, key_pair_location=key_pair_location
                )
            )
        except ValueError as exc:
            raise LedgerServiceError(str(exc)) from exc

        statements: list[tuple[str, tuple]] = []
        if is_default:
            statements.append(
                ("UPDATE spendable_balances SET is_default = 0 WHERE wallet = ?", (location,))
            )
        statements.append(
            (
                "INSERT INTO spendable_balances "
                "(wallet, name, is_default, key_pair_location, secret_key) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    location,
                    name,
                    int(is_default),
                    key_pair_location,
                    key_pair.secret_key.expose(),
                ),
            )
        )
        with _storage_errors():
            await self.db.execute_all(statements)
        logger.info(f"Spendable balance '{name}' added to wallet {location}")

    async def wallet_sweep(self, from_location: str, to_location: str) -> list[str]:
        wallet = await self.wallet_get(from_location)
        destination = await self._spendable_coin(to_location)
        sources = [b.key_pair_location for b in wallet.balances]
        if destination["xorname"] in sources:
            raise LedgerServiceError(
                f"Cannot sweep wallet \"{from_location}\" into one of its own balances"
            )

        total = Decimal(0)
        statements: list[tuple[str, tuple]] = []
        for source in dict.fromkeys(sources):
            coin = await self._require_coin_balance(source)
            total += _to_decimal(coin["balance"])
            statements.append(
                ("UPDATE coin_balances SET balance = '0' WHERE xorname = ?", (source,))
            )
        new_balance = _to_decimal(destination["balance"]) + total
        statements.append(
            (
                "UPDATE coin_balances SET balance = ? WHERE xorname = ?",
                (str(new_balance), destination["xorname"]),
            )
        )
        with _storage_errors():
            await self.db.execute_all(statements)
        logger.info(f"Swept {total} coins from wallet {from_location} to {destination['xorname']}")
        return [b.name for b in wallet.balances]

    async def wallet_clear(self, location: str) -> None:
        if not await self._wallet_exists(location):
            raise LedgerServiceError(f"No wallet found at XOR name \"{location}\"")
        with _storage_errors():
            await self.db.execute(
                "DELETE FROM spendable_balances WHERE wallet = ?", (location,)
            )

    # ------------------------------------------------------------------
    # Keys / coin balances
    # ------------------------------------------------------------------

    async def keys_fetch_public_key(self, location: str, secret_key: SecretKey) -> str:
        coin = await self._require_coin_balance(location)
        if _public_key_of(secret_key) != coin["public_key"]:
            raise LedgerServiceError(
                f"Secret key does not match the public key at XOR name \"{location}\""
            )
        return coin["public_key"]

    async def keys_create_preload_test_coins(self, preload: Decimal, public_key: str) -> str:
        if preload < 0:
            raise LedgerServiceError(f"Invalid preload amount {preload}")
        xorname = _new_xorname()
        with _storage_errors():
            await self.db.execute(
                "INSERT INTO coin_balances (xorname, public_key, balance) VALUES (?, ?, ?)",
                (xorname, public_key, str(preload)),
            )
        logger.info(f"Coin balance with {preload} test coins created at {xorname}")
        return xorname

    async def keys_create(self, funding_source: str, preload: Decimal, public_key: str) -> str:
        if preload < 0:
            raise LedgerServiceError(f"Invalid preload amount {preload}")
        source = await self._spendable_coin(funding_source)
        available = _to_decimal(source["balance"])
        if available < preload:
            raise LedgerServiceError(
                f"Not enough balance at XOR name \"{funding_source}\": "
                f"{available} available, {preload} requested"
            )

        xorname = _new_xorname()
        with _storage_errors():
            await self.db.execute_all(
                [
                    (
                        "UPDATE coin_balances SET balance = ? WHERE xorname = ?",
                        (str(available - preload), source["xorname"]),
                    ),
                    (
                        "INSERT INTO coin_balances (xorname, public_key, balance) VALUES (?, ?, ?)",
                        (xorname, public_key, str(preload)),
                    ),
                ]
            )
        logger.info(f"Coin balance created at {xorname}, funded with {preload} from {source['xorname']}")
        return xorname
