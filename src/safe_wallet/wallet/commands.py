"""The closed set of wallet sub-commands and their results."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union


@dataclass(frozen=True)
class Create:
    """Create a new, empty wallet."""


@dataclass(frozen=True)
class Balance:
    """Query the total balance of a wallet or coin balance."""


@dataclass(frozen=True)
class Insert:
    """Insert a spendable balance into a wallet.

    With ``key`` set, the existing key pair at that location is linked and the
    user is asked for its secret key. Without it, a new key pair is minted,
    funded from ``payee`` (or with test coins) and linked.
    """

    payee: str
    name: str
    target: Optional[str] = None
    key: Optional[str] = None
    test_coins: bool = False
    preload: Optional[str] = None
    default: bool = False


@dataclass(frozen=True)
class Transfer:
    to: str
    from_: Optional[str] = None


@dataclass(frozen=True)
class Sweep:
    """Move all coins within a wallet to a given balance."""

    from_: str
    to: str


@dataclass(frozen=True)
class CheckTx:
    """Check the status of a given transaction."""


WalletCommand = Union[Create, Balance, Insert, Transfer, Sweep, CheckTx]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a successful command.

    ``message`` is the confirmation printed to the user and always contains
    ``location`` verbatim.
    """

    message: str
    location: str
    balance: Optional[Decimal] = None
    name: Optional[str] = None
