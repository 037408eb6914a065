"""
Allowance - how much the minter may spend, and what the user can do about it.

The tracker polls allowance(owner, minter) every block until it sees a
value it can trust, then stops. Approving or disapproving marks the value
Stale, which starts polling again until the chain reports something new.

State machine (pure, see derive_allowance_state):

    wallet not connected          → NO_WALLET
    connected, unknown or Stale   → UPDATING
    connected, Fresh, <= 0        → NO_ALLOWANCE   (approve available)
    connected, Fresh, > 0         → HAS_ALLOWANCE  (disapprove available)

Freshness compares a new read with the last raw value only, not with the
amount we asked for. A third-party allowance change racing our approve can
therefore look like confirmation of it.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional

from .constants import FANTOM_BLOCK_TIME, POLLING, TOR_MINTER_ADDRESS, Erc20Token
from .ledger import Ledger
from .perishable import Fresh, Perishable, invalidate, is_truly_fresh
from .result import Err, Result
from .tracker import Tracker
from .wallet import WalletSession, WalletState

logger = logging.getLogger("hector.allowance")


class AllowanceState(str, Enum):
    NO_WALLET = "NoWallet"
    UPDATING = "Updating"
    NO_ALLOWANCE = "NoAllowance"
    HAS_ALLOWANCE = "HasAllowance"


def derive_allowance_state(wallet_state: WalletState, allowance: Optional[Perishable]) -> AllowanceState:
    if wallet_state != WalletState.CONNECTED:
        return AllowanceState.NO_WALLET
    if allowance is None or not allowance.is_fresh:
        return AllowanceState.UPDATING
    if allowance.value > 0:
        return AllowanceState.HAS_ALLOWANCE
    return AllowanceState.NO_ALLOWANCE


Action = Callable[[], Awaitable[Result]]


@dataclass(frozen=True)
class Allowance:
    """Allowance state plus the one action it offers, if any."""
    state: AllowanceState
    approve: Optional[Action] = None
    disapprove: Optional[Action] = None


class AllowanceTracker(Tracker):

    def __init__(
        self,
        token: Erc20Token,
        session: WalletSession,
        ledger: Ledger,
        spender: str = TOR_MINTER_ADDRESS,
        block_time: float = FANTOM_BLOCK_TIME,
    ):
        super().__init__(
            token, session, ledger,
            interval=block_time * POLLING.ALLOWANCE_INTERVAL_BLOCKS,
            kind="allowance",
        )
        self.spender = spender
        self._allowance: Optional[Perishable] = None

    @property
    def perishable(self) -> Optional[Perishable]:
        return self._allowance

    @property
    def state(self) -> AllowanceState:
        return derive_allowance_state(self._wallet.state, self._allowance)

    @property
    def allowance(self) -> Allowance:
        state = self.state
        if state == AllowanceState.NO_ALLOWANCE:
            return Allowance(state, approve=self.approve)
        if state == AllowanceState.HAS_ALLOWANCE:
            return Allowance(state, disapprove=self.disapprove)
        return Allowance(state)

    async def approve(self) -> Result:
        return await self._change_allowance(POLLING.APPROVE_AMOUNT)

    async def disapprove(self) -> Result:
        return await self._change_allowance(POLLING.DISAPPROVE_AMOUNT)

    async def _change_allowance(self, amount: Decimal) -> Result:
        """
        Send approve(spender, amount). On success the current value goes
        Stale so polling resumes. On failure nothing changes and the Err is
        handed back to the caller.
        """
        wallet, token, before = self._wallet, self.token, self._allowance
        if not wallet.is_connected:
            return Err("wallet not connected")
        if before is None or not before.is_fresh:
            return Err("allowance is updating")

        result = await self._ledger.approve(wallet, token, self.spender, amount)
        if not result.is_ok:
            logger.info(f"[{self.name}] approve({amount}) failed: {result.reason}")
            return result

        if wallet is not self._wallet or token != self.token:
            logger.info(f"[{self.name}] approve({amount}) confirmed for a previous subscription; ignored")
            return result

        logger.info(f"[{self.name}] approve({amount}) confirmed; waiting for new allowance")
        self._set(invalidate(before))
        return result

    def _set(self, allowance: Optional[Perishable]) -> None:
        self._allowance = allowance
        self._notify()
        self._sync()

    def _deps(self) -> tuple:
        return (self.token, self._wallet, self._allowance)

    def _should_poll(self) -> bool:
        if not self._wallet.is_connected:
            return False
        return self._allowance is None or not self._allowance.is_fresh

    def _reset(self) -> None:
        if self._allowance is not None:
            self._allowance = None
            self._notify()

    def _loop(self):
        wallet, token, spender, ledger = self._wallet, self.token, self.spender, self._ledger
        previous = self._allowance

        async def read():
            return await ledger.allowance(wallet, token, spender)

        def publish(value: Decimal) -> bool:
            if is_truly_fresh(previous, value):
                self._set(Fresh(value))
                return False
            return True

        return read, publish
