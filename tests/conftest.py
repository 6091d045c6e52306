"""
Pytest fixtures for Safe Wallet tests.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from safe_wallet.ledger.local import LocalLedger
from safe_wallet.wallet.commander import WalletCommander
from safe_wallet.wallet.keys import generate_secret_key
from safe_wallet.wallet.models import Wallet
from safe_wallet.wallet.resolver import TargetResolver


@pytest.fixture
async def ledger(tmp_path):
    """A LocalLedger backed by a throwaway SQLite file."""
    async with LocalLedger.at(tmp_path / "ledger.db") as local:
        yield local


@pytest.fixture
def mock_ledger():
    """Ledger double whose calls can be counted and ordered."""
    mock = AsyncMock(spec=LocalLedger)
    mock.wallet_get.side_effect = lambda location: Wallet(location=location)
    return mock


@pytest.fixture
def prompt():
    """Interactive prompt double; answers are set per test."""
    return Mock(return_value="")


@pytest.fixture
def caller_sk():
    """A well-formed secret key for balance queries."""
    with generate_secret_key() as sk:
        return sk.expose()


@pytest.fixture
def make_commander(prompt, caller_sk):
    def _make(ledger, default_target=None):
        return WalletCommander(
            ledger,
            TargetResolver(default_target),
            prompt,
            secret_key_source=lambda: caller_sk,
        )

    return _make
