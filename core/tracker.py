"""
Tracker - a polling loop bound to one (token, wallet) subscription.

A tracker owns one Subscription at a time. Whenever its dependency key
changes (token, wallet identity, plus whatever the subclass adds) the old
subscription is closed BEFORE a new one is started. Nothing else restarts it.

Subclasses provide:
- _deps()        the dependency key; a new key means a new loop
- _should_poll() whether a loop is needed for the current key
- _loop()        (read, publish) for a new loop instance, capturing state by value
- _reset()       forget values when the subscription identity changes
"""

import logging
from typing import Callable, Optional

from .constants import Erc20Token
from .ledger import Ledger
from .polling import Publish, Read, Subscription, start_polling
from .wallet import Wallet, WalletSession

logger = logging.getLogger("hector.tracker")


class Tracker:

    def __init__(self, token: Erc20Token, session: WalletSession, ledger: Ledger, interval: float, kind: str):
        self.token = token
        self.interval = interval
        self.kind = kind
        self._session = session
        self._ledger = ledger
        self._wallet: Wallet = session.wallet

        self._subscription: Optional[Subscription] = None
        # Closed subscriptions whose task has not finished yet (read in flight)
        self._draining: set[Subscription] = set()
        self._deps_key: Optional[tuple] = None
        self._started = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: list[Callable[["Tracker"], None]] = []

    # ============================================================
    # LIFECYCLE
    # ============================================================

    @property
    def name(self) -> str:
        return f"{self.kind}:{self.token.symbol or self.token.address[:10]}"

    @property
    def wallet(self) -> Wallet:
        return self._wallet

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    @property
    def draining(self) -> int:
        """Closed loops still finishing a read."""
        return len(self._draining)

    def start(self) -> None:
        """Mount: follow the wallet session and start polling if needed."""
        if self._started:
            return
        self._started = True
        self._unsubscribe = self._session.subscribe(self.on_wallet_changed)
        if self._session.wallet is not self._wallet:
            self._wallet = self._session.wallet
            self._reset()
        self._sync()

    def close(self) -> None:
        """Unmount: stop polling and stop following the wallet. Idempotent."""
        if not self._started:
            return
        self._started = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop()
        self._deps_key = None

    def on_wallet_changed(self, wallet: Wallet) -> None:
        if wallet is self._wallet:
            return
        self._wallet = wallet
        self._reset()
        self._sync()

    def set_token(self, token: Erc20Token) -> None:
        if token == self.token:
            return
        self.token = token
        self._reset()
        self._sync()

    def add_listener(self, listener: Callable[["Tracker"], None]) -> None:
        """Called after every published change."""
        self._listeners.append(listener)

    # ============================================================
    # RESTART LOGIC
    # ============================================================

    def _stop(self) -> None:
        subscription = self._subscription
        if subscription is None:
            return
        subscription.close()
        self._subscription = None
        if not subscription.done:
            self._draining.add(subscription)
            subscription.task.add_done_callback(lambda _: self._draining.discard(subscription))

    def _sync(self) -> None:
        if not self._started:
            return
        deps = self._deps()
        if deps == self._deps_key:
            return
        self._stop()
        self._deps_key = deps
        if self._should_poll():
            read, publish = self._loop()
            self._subscription = start_polling(read, publish, self.interval, name=self.name)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning(f"[{self.name}] listener failed: {type(e).__name__}: {e}")

    # ============================================================
    # SUBCLASS HOOKS
    # ============================================================

    def _deps(self) -> tuple:
        return (self.token, self._wallet)

    def _should_poll(self) -> bool:
        return self._wallet.is_connected

    def _loop(self) -> "tuple[Read, Publish]":
        raise NotImplementedError

    def _reset(self) -> None:
        pass
