"""Interface to the Ledger Service that stores wallets and coin balances.

Implementations raise :class:`~safe_wallet.errors.LedgerServiceError` for
every failure (unreachable store, rejected request, insufficient funds).
Calls are never retried by the caller.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from safe_wallet.wallet.models import KeyPair, SecretKey, Wallet


class LedgerService(Protocol):
    # Wallets

    async def wallet_create(self) -> str:
        """Allocate an empty wallet and return its XOR name."""
        ...

    async def wallet_balance(self, location: str, secret_key: SecretKey) -> Decimal:
        """Total coins held by a wallet, or by a single coin balance."""
        ...

    async def wallet_add(
        self,
        location: str,
        name: str,
        is_default: bool,
        key_pair: KeyPair,
        key_pair_location: str,
    ) -> None:
        ...

    async def wallet_get(self, location: str) -> Wallet:
        ...

    async def wallet_sweep(self, from_location: str, to_location: str) -> list[str]:
        """Drain every spendable balance of a wallet into *to_location*."""
        ...

    async def wallet_clear(self, location: str) -> None:
        """Remove every spendable balance from a wallet."""
        ...

    # Keys / coin balances

    async def keys_fetch_public_key(self, location: str, secret_key: SecretKey) -> str:
        """Return the public key stored at *location*, checking it matches *secret_key*."""
        ...

    async def keys_create_preload_test_coins(self, preload: Decimal, public_key: str) -> str:
        ...

    async def keys_create(self, funding_source: str, preload: Decimal, public_key: str) -> str:
        ...
