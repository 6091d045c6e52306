"""Key-pair provisioning: mint a new key pair and store a funded coin balance for it."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from safe_wallet.errors import LedgerServiceError, ProvisioningError
from safe_wallet.wallet.keys import derive_public_key, generate_secret_key
from safe_wallet.wallet.models import KeyPair, SecretKey

if TYPE_CHECKING:
    from safe_wallet.ledger.base import LedgerService

logger = logging.getLogger("safe_wallet.wallet.provisioner")


def parse_preload(preload: str | Decimal | None) -> Decimal:
    """Parse a preload amount. ``None`` means zero.

    Raises
    ------
    ProvisioningError
        If the amount is not a finite, non-negative decimal.
    """
    if preload is None:
        return Decimal(0)
    try:
        amount = Decimal(str(preload).strip())
    except InvalidOperation as exc:
        raise ProvisioningError(f"Invalid preload amount '{preload}'") from exc
    if not amount.is_finite() or amount < 0:
        raise ProvisioningError(f"Invalid preload amount '{preload}'")
    return amount


class KeyPairProvisioner:
    """Produces new spendable-balance identities.

    The secret key of a minted pair only lives in the returned
    :class:`KeyPair`; the caller wipes it once the ledger has consumed it.
    """

    def __init__(self, ledger: LedgerService) -> None:
        self.ledger = ledger

    async def provision(
        self,
        use_test_coins: bool,
        funding_source: str | None = None,
        preload_amount: str | Decimal | None = None,
        existing_public_key: str | None = None,
        secret_key: SecretKey | None = None,
    ) -> tuple[str, KeyPair]:
        """Mint a key pair and store a coin balance for it.

        With *use_test_coins* the balance is allocated *preload_amount* test
        coins; otherwise *preload_amount* is drawn from *funding_source*.

        With *existing_public_key* nothing is minted or funded: the public key
        stored at that location is fetched (which checks it against the
        user-supplied *secret_key*) and paired with it.

        Returns the XOR name of the coin balance and the key pair.
        """
        if existing_public_key is not None:
            if secret_key is None:
                raise ProvisioningError("A secret key is required to link an existing key")
            public_key = await self.ledger.keys_fetch_public_key(existing_public_key, secret_key)
            return existing_public_key, KeyPair(public_key=public_key, secret_key=secret_key)

        preload = parse_preload(preload_amount)
        if not use_test_coins and funding_source is None:
            raise ProvisioningError("A funding source is required unless test coins are used")

        secret_key = generate_secret_key()
        try:
            public_key = derive_public_key(secret_key)
            if use_test_coins:
                xorname = await self.ledger.keys_create_preload_test_coins(preload, public_key)
            else:
                xorname = await self.ledger.keys_create(funding_source, preload, public_key)
        except (LedgerServiceError, ValueError) as exc:
            secret_key.wipe()
            raise ProvisioningError(f"Failed to create a new key pair: {exc}") from exc

        logger.info(f"New key pair provisioned at {xorname} (preload {preload})")
        return xorname, KeyPair(public_key=public_key, secret_key=secret_key, preload_amount=preload)
