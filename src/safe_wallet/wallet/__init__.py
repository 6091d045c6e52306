"""Wallet command layer for Safe Wallet.

Turns parsed sub-commands into Ledger Service calls: creating wallets,
linking or minting spendable balances, querying balances and sweeping
coins. Secret keys are only held for the duration of the call that needs
them.
"""
