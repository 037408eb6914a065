"""Shared fixtures for the mint service test suite."""

import pytest

from core.constants import Erc20Token
from core.wallet import Wallet, WalletSession
from tests.fakes import FakeLedger


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def session():
    """Session with no key configured: starts as NO_WALLET."""
    return WalletSession()


@pytest.fixture
def dai():
    return Erc20Token(address="0x00000000000000000000000000000000000000da", decimals=18, symbol="DAI")


@pytest.fixture
def tor():
    return Erc20Token(address="0x0000000000000000000000000000000000000070", decimals=18, symbol="TOR")


@pytest.fixture
def alice():
    return Wallet.connected("0xA11cE00000000000000000000000000000000001")


@pytest.fixture
def bob():
    return Wallet.connected("0xB0B0000000000000000000000000000000000002")
