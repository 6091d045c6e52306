"""Errors raised by wallet commands.

Every error is terminal for the current invocation; the CLI prints the
message on a single line and exits non-zero.
"""

from __future__ import annotations

UNSUPPORTED_MESSAGE = "Sub-command not supported yet"


class WalletError(Exception):
    """Base class for all user-facing wallet failures."""


class NoTargetError(WalletError):
    """No location was given and no default target is configured."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No target location provided and no default wallet is configured. "
            "Pass a location or run 'safe wallet set-default <location>'."
        )


class ProvisioningError(WalletError):
    """Minting or funding a new key pair failed."""


class LedgerServiceError(WalletError):
    """The Ledger Service rejected or failed to process a request."""


class UnsupportedCommandError(WalletError):
    """The command is recognised but not implemented."""

    def __init__(self) -> None:
        super().__init__(UNSUPPORTED_MESSAGE)


class ConfigError(WalletError):
    """The configuration file could not be read or validated."""
