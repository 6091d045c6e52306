"""CLI for Safe Wallet - manage wallets and spendable balances from the terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from safe_wallet.errors import WalletError
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

app = typer.Typer(
    name="safe",
    help="Create wallets, attach spendable balances, and move coins.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)
console = Console()

_config_path: Path | None = None
_target: str | None = None


def _version_callback(value: bool):
    if value:
        from safe_wallet import __version__
        console.print(f"safe-wallet-cli {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.yaml (default: .safe-wallet/config.yaml)",
        envvar="SAFE_WALLET_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Create wallets, attach spendable balances, and move coins."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def prompt_user(prompt_text: str, error_text: str) -> str:
    """Ask until a non-empty answer is given. Input is hidden."""
    answer = console.input(prompt_text, password=True).strip()
    while not answer:
        console.print(f"[red]{escape(error_text)}[/red]")
        answer = console.input(prompt_text, password=True).strip()
    return answer


def _fail(exc: Exception) -> None:
    console.print(f"[red]{escape(str(exc))}[/red]", soft_wrap=True)
    raise typer.Exit(1)


def _load():
    from safe_wallet.config import default_config_path, load_config

    path = _config_path or default_config_path()
    return load_config(path), path


async def _execute(command: WalletCommand, target: str | None) -> CommandResult:
    from safe_wallet.config import ledger_path
    from safe_wallet.ledger.local import LocalLedger
    from safe_wallet.wallet.commander import WalletCommander, needs_target, requested_target
    from safe_wallet.wallet.resolver import TargetResolver

    config, path = _load()
    resolver = TargetResolver(config.wallet.default_target)
    if needs_target(command):
        # Fail on a missing target before the ledger file is created.
        target = resolver.resolve(requested_target(command, target))
    async with LocalLedger.at(ledger_path(config, path)) as ledger:
        commander = WalletCommander(
            ledger,
            resolver,
            prompt_user,
            secret_key_source=lambda: config.wallet.secret_key,
        )
        return await commander.execute(command, target)


def _dispatch(command: WalletCommand, target: str | None = None) -> CommandResult:
    try:
        result = _run(_execute(command, target))
    except WalletError as e:
        _fail(e)
    console.print(result.message, markup=False, highlight=False, soft_wrap=True)
    return result


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(
    name="wallet",
    help="Manage wallets and their spendable balances.",
    no_args_is_help=True,
)
app.add_typer(wallet_app, name="wallet")


@wallet_app.callback()
def wallet_main(
    target: str = typer.Option(
        None,
        "--target",
        "-t",
        help="Wallet XOR name to operate on (default: wallet.default_target)",
    ),
):
    """Manage wallets and their spendable balances."""
    global _target
    _target = target


@wallet_app.command("create")
def wallet_create():
    """Create a new Wallet/CoinBalance."""
    _dispatch(Create())


@wallet_app.command("balance")
def wallet_balance():
    """Query a new Wallet or PublicKeys CoinBalance."""
    _dispatch(Balance(), _target)


@wallet_app.command("insert")
def wallet_insert(
    payee: str = typer.Argument(help="The source wallet for funds"),
    target: str = typer.Argument(None, help="The target wallet to store the spendable balance"),
    key: str = typer.Argument(None, help="The existing key's XOR name to add to the wallet"),
    name: str = typer.Option(..., "--name", help="The name to give this spendable balance"),
    test_coins: bool = typer.Option(
        False, "--test-coins", help="Create a key, allocate test-coins onto it, and add it to the wallet"
    ),
    preload: str = typer.Option(None, "--preload", help="Preload the key with a coin balance"),
    default: bool = typer.Option(False, "--default", help="Set this balance as the wallet's default"),
):
    """Insert a spendable balance into a wallet."""
    _dispatch(
        Insert(
            payee=payee,
            name=name,
            target=target,
            key=key,
            test_coins=test_coins,
            preload=preload,
            default=default,
        ),
        _target,
    )


@wallet_app.command("transfer")
def wallet_transfer(
    to: str = typer.Argument(help="Target wallet"),
    from_: str = typer.Argument(None, metavar="[FROM]", help="Source wallet, or pulled from stdin if not present"),
):
    """Transfer coins between wallets."""
    _dispatch(Transfer(to=to, from_=from_), _target)


@wallet_app.command("sweep")
def wallet_sweep(
    from_: str = typer.Option(..., "--from", help="The source wallet for funds"),
    to: str = typer.Option(..., "--to", help="The receiving wallet/balance"),
):
    """Move all coins within a wallet to a given balance."""
    _dispatch(Sweep(from_=from_, to=to))


@wallet_app.command("check-tx")
def wallet_check_tx():
    """Check the status of a given transaction."""
    _dispatch(CheckTx())


@wallet_app.command("show")
def wallet_show():
    """List the spendable balances of a wallet."""
    from safe_wallet.config import ledger_path
    from safe_wallet.ledger.local import LocalLedger
    from safe_wallet.wallet.resolver import TargetResolver

    async def _show():
        config, path = _load()
        location = TargetResolver(config.wallet.default_target).resolve(_target)
        async with LocalLedger.at(ledger_path(config, path)) as ledger:
            return await ledger.wallet_get(location)

    try:
        wallet = _run(_show())
    except WalletError as e:
        _fail(e)

    if not wallet.balances:
        console.print(f"[dim]Wallet {wallet.location} has no spendable balances.[/dim]", soft_wrap=True)
        return

    table = Table(title=f"Wallet {wallet.location}")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Default")
    table.add_column("Coin balance XOR name", style="dim")
    for balance in wallet.balances:
        table.add_row(
            escape(balance.name),
            "[green]yes[/green]" if balance.is_default else "",
            balance.key_pair_location,
        )
    console.print(table)


@wallet_app.command("set-default")
def wallet_set_default(
    location: str = typer.Argument(help="Wallet XOR name to use when no target is given"),
):
    """Set the default target wallet."""
    from safe_wallet.config import default_config_path, set_default_target

    path = _config_path or default_config_path()
    try:
        set_default_target(path, location)
    except WalletError as e:
        _fail(e)
    console.print(f"Default wallet set to XOR name \"{location}\"", markup=False, soft_wrap=True)


if __name__ == "__main__":
    app()
