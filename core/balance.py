"""
Balance Tracker - token balance kept in sync with the chain.

Polls balanceOf every 10 blocks for as long as the wallet is connected and
republishes whenever the value differs from what is shown. Equal reads are
not republished. A balance that returns to an earlier value is still a
change and is published.

refresh_now() restarts polling immediately, e.g. after the user switched
between mint and redeem and expects up-to-date numbers.
"""

from decimal import Decimal

from .constants import FANTOM_BLOCK_TIME, POLLING, Erc20Token
from .ledger import Ledger
from .tracker import Tracker
from .wallet import WalletSession


class BalanceTracker(Tracker):

    def __init__(
        self,
        token: Erc20Token,
        session: WalletSession,
        ledger: Ledger,
        block_time: float = FANTOM_BLOCK_TIME,
    ):
        super().__init__(
            token, session, ledger,
            interval=block_time * POLLING.BALANCE_INTERVAL_BLOCKS,
            kind="balance",
        )
        self._balance: Decimal = Decimal(0)
        self._refreshes: int = 0

    def current_balance(self) -> Decimal:
        return self._balance

    @property
    def refreshes(self) -> int:
        return self._refreshes

    def refresh_now(self) -> None:
        """Bump the epoch so the loop restarts right away."""
        self._refreshes += 1
        self._sync()

    def _deps(self) -> tuple:
        return (self.token, self._wallet, self._refreshes)

    def _reset(self) -> None:
        if self._balance != 0:
            self._balance = Decimal(0)
            self._notify()

    def _loop(self):
        wallet, token, ledger = self._wallet, self.token, self._ledger

        async def read():
            return await ledger.balance_of(wallet, token)

        def publish(value: Decimal) -> bool:
            if value != self._balance:
                self._balance = value
                self._notify()
            return True

        return read, publish
