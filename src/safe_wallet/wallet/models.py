"""Wallet data model: secret keys, key pairs, spendable balances and wallets."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class SecretKey:
    """A secret key held only for the duration of one ledger call.

    The value is masked in ``repr``/``str``, cannot be copied or pickled, and
    is zeroed by :meth:`wipe` (or on leaving a ``with`` block).
    """

    __slots__ = ("_buf",)

    def __init__(self, value: str) -> None:
        value = value.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        self._buf: bytearray | None = bytearray(value.lower(), "utf-8", "surrogatepass")

    def expose(self) -> str:
        """Return the raw hex value. Raises ``ValueError`` once wiped."""
        if self._buf is None:
            raise ValueError("Secret key has already been wiped")
        return self._buf.decode("utf-8", "surrogatepass")

    def wipe(self) -> None:
        if self._buf is not None:
            for i in range(len(self._buf)):
                self._buf[i] = 0
            self._buf = None

    @property
    def wiped(self) -> bool:
        return self._buf is None

    def __enter__(self) -> SecretKey:
        return self

    def __exit__(self, *exc_info) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return "SecretKey('**********')"

    __str__ = __repr__

    def __copy__(self):
        raise TypeError("SecretKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("SecretKey cannot be copied")

    def __reduce_ex__(self, protocol):
        raise TypeError("SecretKey cannot be serialized")


@dataclass(frozen=True)
class KeyPair:
    """A public/secret key pair identifying a coin balance."""

    public_key: str
    secret_key: SecretKey
    preload_amount: Optional[Decimal] = None


class SpendableBalance(BaseModel):
    """A named link from a wallet to the coin balance at ``key_pair_location``."""

    name: str
    is_default: bool = False
    key_pair_location: str


class Wallet(BaseModel):
    """A wallet container and its spendable balances.

    Balance names are unique within a wallet and at most one balance is the
    default. Inserting a new default balance demotes the previous one.
    """

    location: str
    balances: list[SpendableBalance] = Field(default_factory=list)

    @property
    def default(self) -> SpendableBalance | None:
        for balance in self.balances:
            if balance.is_default:
                return balance
        return None

    def get(self, name: str) -> SpendableBalance | None:
        for balance in self.balances:
            if balance.name == name:
                return balance
        return None

    def insert(self, balance: SpendableBalance) -> None:
        """Add *balance*, keeping names and coin balances unique and a single default.

        Raises
        ------
        ValueError
            If a balance with the same name, or linking the same coin
            balance, already exists.
        """
        if self.get(balance.name) is not None:
            raise ValueError(
                f"A spendable balance named '{balance.name}' already exists "
                f"in wallet \"{self.location}\""
            )
        if any(b.key_pair_location == balance.key_pair_location for b in self.balances):
            raise ValueError(
                f"Coin balance \"{balance.key_pair_location}\" is already linked "
                f"in wallet \"{self.location}\""
            )
        if balance.is_default:
            for existing in self.balances:
                existing.is_default = False
        self.balances.append(balance)

    def clear(self) -> list[str]:
        """Remove every spendable balance and return their names."""
        names = [b.name for b in self.balances]
        self.balances = []
        return names
