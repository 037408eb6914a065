"""Tests for BalanceTracker."""

import asyncio
from decimal import Decimal

from core.balance import BalanceTracker
from core.result import Err, Ok
from core.wallet import Wallet
from tests.fakes import BLOCK_TIME, settle, wait_until


def _visible(tracker):
    """Record every balance the page would show, starting with the initial one."""
    seen = [tracker.current_balance()]
    tracker.add_listener(lambda t: seen.append(t.current_balance()))
    return seen


def test_duplicate_reads_are_not_republished(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.scripts[key] = [Ok(Decimal(100)), Ok(Decimal(100)), Ok(Decimal(150))]
    ledger.balances[key] = Decimal(150)

    async def scenario():
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        seen = _visible(tracker)
        tracker.start()
        await wait_until(lambda: ledger.reads(key) >= 5)
        tracker.close()
        return seen

    assert asyncio.run(scenario()) == [Decimal(0), Decimal(100), Decimal(150)]


def test_returning_to_previous_value_is_published(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.scripts[key] = [Ok(Decimal(100)), Ok(Decimal(150))]
    ledger.balances[key] = Decimal(100)

    async def scenario():
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        seen = _visible(tracker)
        tracker.start()
        await wait_until(lambda: ledger.reads(key) >= 4)
        tracker.close()
        return seen

    assert asyncio.run(scenario()) == [Decimal(0), Decimal(100), Decimal(150), Decimal(100)]


def test_errors_keep_zero_and_keep_polling(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.scripts[key] = [Err("rpc down"), Err("rpc down")]
    ledger.balances[key] = Decimal("3.25")

    async def scenario():
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        tracker.start()
        assert tracker.current_balance() == 0
        await wait_until(lambda: tracker.current_balance() == Decimal("3.25"))
        tracker.close()
        return ledger.reads(key)

    assert asyncio.run(scenario()) >= 3


def test_does_not_poll_without_wallet(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.balances[key] = Decimal(5)

    async def scenario():
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        tracker.start()
        await settle()
        assert ledger.calls == []
        assert tracker.subscription is None

        session.set_wallet(alice)
        await wait_until(lambda: tracker.current_balance() == Decimal(5))

        session.set_wallet(Wallet.disconnected())
        assert tracker.current_balance() == 0
        reads = ledger.reads(key)
        await settle()
        tracker.close()
        return reads, ledger.reads(key)

    before, after = asyncio.run(scenario())
    assert before == after


def test_refresh_now_restarts_immediately(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.balances[key] = Decimal(1)

    async def scenario():
        session.set_wallet(alice)
        # 10 × 1s between polls: only a refresh can cause a second read soon
        tracker = BalanceTracker(dai, session, ledger, block_time=1.0)
        tracker.start()
        await wait_until(lambda: tracker.current_balance() == 1)
        first = tracker.subscription

        ledger.balances[key] = Decimal(2)
        tracker.refresh_now()
        assert first.closed
        await wait_until(lambda: tracker.current_balance() == 2, timeout=1.0)
        tracker.close()
        return ledger.reads(key), tracker.refreshes

    reads, refreshes = asyncio.run(scenario())
    assert reads == 2
    assert refreshes == 1


def test_token_switch_drops_old_in_flight_read(ledger, session, dai, tor, alice):
    old_key = ledger.balance_key(alice, dai)
    new_key = ledger.balance_key(alice, tor)
    ledger.balances[old_key] = Decimal(999)
    ledger.balances[new_key] = Decimal(7)

    async def scenario():
        gate = asyncio.Event()
        ledger.gates[old_key] = gate
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        tracker.start()
        await wait_until(lambda: ledger.reads(old_key) == 1)

        tracker.set_token(tor)
        await wait_until(lambda: tracker.current_balance() == 7)

        gate.set()
        await settle()
        tracker.close()
        return tracker.current_balance(), ledger.reads(old_key)

    balance, old_reads = asyncio.run(scenario())
    assert balance == 7
    assert old_reads == 1


def test_wallet_change_starts_from_zero(ledger, session, dai, alice, bob):
    ledger.balances[ledger.balance_key(alice, dai)] = Decimal(10)
    bob_key = ledger.balance_key(bob, dai)
    ledger.balances[bob_key] = Decimal(20)

    async def scenario():
        gate = asyncio.Event()
        ledger.gates[bob_key] = gate
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        tracker.start()
        await wait_until(lambda: tracker.current_balance() == 10)

        session.set_wallet(bob)
        zero = tracker.current_balance()
        gate.set()
        await wait_until(lambda: tracker.current_balance() == 20)
        tracker.close()
        return zero

    assert asyncio.run(scenario()) == 0


def test_close_stops_polling(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.balances[key] = Decimal(1)

    async def scenario():
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=BLOCK_TIME)
        tracker.start()
        await wait_until(lambda: ledger.reads(key) >= 2)
        tracker.close()
        tracker.close()
        reads = ledger.reads(key)
        await settle()
        return reads, ledger.reads(key)

    before, after = asyncio.run(scenario())
    assert before == after


def test_refresh_now_drops_read_already_in_flight(ledger, session, dai, alice):
    key = ledger.balance_key(alice, dai)
    ledger.balances[key] = Decimal(2)

    async def scenario():
        gate = asyncio.Event()
        ledger.gates[key] = gate
        session.set_wallet(alice)
        tracker = BalanceTracker(dai, session, ledger, block_time=1.0)
        tracker.start()
        await wait_until(lambda: ledger.reads(key) == 1)

        # Only the first read waits on the gate
        del ledger.gates[key]
        tracker.refresh_now()
        draining = tracker.draining
        await wait_until(lambda: tracker.current_balance() == 2)

        ledger.balances[key] = Decimal(999)
        gate.set()
        await settle()
        drained = tracker.draining
        tracker.close()
        return tracker.current_balance(), ledger.reads(key), draining, drained

    balance, reads, draining, drained = asyncio.run(scenario())
    assert balance == 2
    assert reads == 2
    assert (draining, drained) == (1, 0)
