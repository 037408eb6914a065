"""Tests for WalletSession."""

import pytest

from core.wallet import WalletSession, WalletState

TEST_KEY = "0x" + "11" * 32


def test_session_without_key_has_no_wallet():
    session = WalletSession()
    assert session.wallet.state == WalletState.NO_WALLET
    with pytest.raises(ValueError):
        session.connect()


def test_connect_twice_keeps_the_same_handle():
    session = WalletSession(private_key=TEST_KEY)
    seen = []
    session.subscribe(seen.append)

    first = session.connect()
    second = session.connect()

    assert first is second
    assert first.is_connected
    assert seen == [first]


def test_disconnect_then_connect_makes_a_new_handle():
    session = WalletSession(private_key=TEST_KEY)
    first = session.connect()
    session.disconnect()
    session.disconnect()
    second = session.connect()

    assert first is not second
    assert first.address == second.address


def test_unsubscribe_stops_notifications():
    session = WalletSession(private_key=TEST_KEY)
    seen = []
    unsubscribe = session.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    session.connect()
    assert seen == []
