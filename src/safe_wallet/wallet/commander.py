"""Wallet command interpreter used by the CLI.

Each call to :meth:`WalletCommander.execute` handles exactly one command
against the Ledger Service and keeps no state between calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from safe_wallet.errors import LedgerServiceError, UnsupportedCommandError
from safe_wallet.wallet.commands import (
    Balance,
    CheckTx,
    CommandResult,
    Create,
    Insert,
    Sweep,
    Transfer,
    WalletCommand,
)
from safe_wallet.wallet.models import SecretKey
from safe_wallet.wallet.provisioner import KeyPairProvisioner
from safe_wallet.wallet.resolver import TargetResolver

if TYPE_CHECKING:
    from safe_wallet.ledger.base import LedgerService

logger = logging.getLogger("safe_wallet.wallet.commander")

# ask(prompt_text, error_text) -> non-empty answer
PromptFn = Callable[[str, str], str]


def needs_target(command: WalletCommand) -> bool:
    """Whether *command* acts on a resolved target location."""
    return isinstance(command, (Balance, Insert))


def requested_target(command: WalletCommand, target: Optional[str]) -> Optional[str]:
    """The location *command* asks for before falling back to the default."""
    if isinstance(command, Insert):
        return command.target or target
    return target


class WalletCommander:
    """Dispatches wallet commands to the Ledger Service.

    Parameters
    ----------
    ledger:
        The Ledger Service all commands are issued against.
    resolver:
        Supplies the target location when a command does not name one.
    prompt:
        Interactive prompt used to ask for secret keys.
    secret_key_source:
        Optional callable returning the caller's configured secret key for
        balance queries. When it returns nothing the user is prompted.
    provisioner:
        Key-pair provisioner; defaults to one backed by *ledger*.
    """

    def __init__(
        self,
        ledger: LedgerService,
        resolver: TargetResolver,
        prompt: PromptFn,
        secret_key_source: Optional[Callable[[], Optional[str]]] = None,
        provisioner: Optional[KeyPairProvisioner] = None,
    ) -> None:
        self.ledger = ledger
        self.resolver = resolver
        self.prompt = prompt
        self.secret_key_source = secret_key_source
        self.provisioner = provisioner or KeyPairProvisioner(ledger)

    async def execute(self, command: WalletCommand, target: Optional[str] = None) -> CommandResult:
        """Run *command* and return its confirmation.

        *target* is the command-level location (e.g. ``--target``); ``Insert``
        carries its own and ignores it unless its own is unset.
        """
        logger.debug(f"Executing {type(command).__name__}")
        if isinstance(command, Create):
            return await self._create()
        if isinstance(command, Balance):
            return await self._balance(target)
        if isinstance(command, Insert):
            return await self._insert(command, target)
        if isinstance(command, Sweep):
            return await self._sweep(command)
        if isinstance(command, (Transfer, CheckTx)):
            raise UnsupportedCommandError()
        raise TypeError(f"Unknown wallet command: {command!r}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _create(self) -> CommandResult:
        xorname = await self.ledger.wallet_create()
        return CommandResult(
            message=f"Wallet created at XOR name: \"{xorname}\"",
            location=xorname,
        )

    async def _balance(self, target: Optional[str]) -> CommandResult:
        location = self.resolver.resolve(target)
        with self._caller_secret_key(location) as secret_key:
            balance = await self.ledger.wallet_balance(location, secret_key)
        return CommandResult(
            message=(
                f"Wallet at XOR name \"{location}\" has a total balance of "
                f"{balance} safecoins"
            ),
            location=location,
            balance=balance,
        )

    async def _insert(self, command: Insert, target: Optional[str]) -> CommandResult:
        location = self.resolver.resolve(requested_target(command, target))
        await self._check_insertable(location, command.name)

        if command.key is not None:
            # Linking an existing key always requires its secret key.
            secret_key = SecretKey(
                self.prompt(
                    "Enter secret key corresponding to public key at XOR name "
                    f"\"{command.key}\": ",
                    "Invalid input",
                )
            )
            with secret_key:
                xorname, key_pair = await self.provisioner.provision(
                    command.test_coins,
                    existing_public_key=command.key,
                    secret_key=secret_key,
                )
                await self.ledger.wallet_add(
                    location, command.name, command.default, key_pair, xorname
                )
            message = (
                f"Spendable balance added with name '{command.name}' in wallet "
                f"located at XOR name \"{location}\""
            )
        else:
            xorname, key_pair = await self.provisioner.provision(
                command.test_coins,
                funding_source=command.payee,
                preload_amount=command.preload,
            )
            with key_pair.secret_key:
                await self.ledger.wallet_add(
                    location, command.name, command.default, key_pair, xorname
                )
            message = (
                f"New spendable balance generated with name '{command.name}' in "
                f"wallet located at XOR name \"{location}\""
            )

        logger.info(f"Spendable balance '{command.name}' ({xorname}) inserted into {location}")
        return CommandResult(message=message, location=location, name=command.name)

    async def _sweep(self, command: Sweep) -> CommandResult:
        drained = await self.ledger.wallet_sweep(command.from_, command.to)
        await self.ledger.wallet_clear(command.from_)
        return CommandResult(
            message=(
                f"Swept {len(drained)} spendable balance(s) from wallet at XOR name "
                f"\"{command.from_}\" into \"{command.to}\""
            ),
            location=command.from_,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_insertable(self, location: str, name: str) -> None:
        # Checked before any coins are minted or the payee is debited.
        wallet = await self.ledger.wallet_get(location)
        if wallet.get(name) is not None:
            raise LedgerServiceError(
                f"A spendable balance named '{name}' already exists in wallet \"{location}\""
            )

    def _caller_secret_key(self, location: str) -> SecretKey:
        value = self.secret_key_source() if self.secret_key_source else None
        if not value:
            value = self.prompt(
                f"Enter secret key for XOR name \"{location}\": ", "Invalid input"
            )
        return SecretKey(value)
