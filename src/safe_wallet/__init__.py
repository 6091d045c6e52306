"""Safe Wallet - create wallets, attach spendable balances, and move coins from the terminal."""

__version__ = "0.3.0"
