"""secp256k1 key generation and public-key derivation using eth-account."""

from __future__ import annotations

from eth_account import Account
from eth_keys import keys

from safe_wallet.wallet.models import SecretKey


def _strip_hex(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def generate_secret_key() -> SecretKey:
    """Generate a fresh random secret key.

    The caller owns the returned value and should wipe it once the key pair
    has been handed to the ledger.
    """
    acct = Account.create()
    return SecretKey(_strip_hex(acct.key.hex()))


def derive_public_key(secret_key: SecretKey) -> str:
    """Return the hex-encoded public key for *secret_key*.

    Raises
    ------
    ValueError
        If the secret key is not 32 bytes of valid hex.
    """
    raw = bytes.fromhex(secret_key.expose())
    if len(raw) != 32:
        raise ValueError("Secret key must be 32 bytes (64 hex characters)")
    try:
        return _strip_hex(keys.PrivateKey(raw).public_key.to_hex())
    except Exception as exc:
        raise ValueError(f"Invalid secret key: {exc}") from exc
