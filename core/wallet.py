"""
Wallet Session - who is connected right now.

A WalletSession owns the current Wallet handle and tells subscribers when it
changes. Every connect/disconnect that changes the state produces a NEW
Wallet object; trackers detect "wallet changed" by identity (`is`), never by
comparing fields.

States:
- NO_WALLET     no signing key configured at all
- DISCONNECTED  a key is configured but the user has not connected
- CONNECTED     an account is available for reads and signing
"""

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger("hector.wallet")


class WalletState(str, Enum):
    NO_WALLET = "no_wallet"
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class Wallet:
    """Read-only handle to a wallet at one moment in time."""

    __slots__ = ("state", "address", "account")

    def __init__(self, state: WalletState, address: str = "", account: Any = None):
        self.state = state
        self.address = address
        # eth_account LocalAccount when connected; signs transactions
        self.account = account

    @property
    def is_connected(self) -> bool:
        return self.state == WalletState.CONNECTED

    def __repr__(self) -> str:
        return f"Wallet({self.state.value}, {self.address[:10] or '-'})"

    @classmethod
    def connected(cls, address: str, account: Any = None) -> "Wallet":
        return cls(WalletState.CONNECTED, address, account)

    @classmethod
    def disconnected(cls) -> "Wallet":
        return cls(WalletState.DISCONNECTED)

    @classmethod
    def missing(cls) -> "Wallet":
        return cls(WalletState.NO_WALLET)


WalletListener = Callable[[Wallet], None]


class WalletSession:
    """
    Shared wallet state for the whole app.

    Usage:
        session = WalletSession(private_key=os.getenv("WALLET_PRIVATE_KEY", ""))
        session.subscribe(tracker.on_wallet_changed)
        session.connect()
    """

    def __init__(self, private_key: str = ""):
        self._private_key = private_key
        self._wallet: Wallet = Wallet.disconnected() if private_key else Wallet.missing()
        self._listeners: list[WalletListener] = []

    @property
    def wallet(self) -> Wallet:
        return self._wallet

    @property
    def has_key(self) -> bool:
        return bool(self._private_key)

    def subscribe(self, listener: WalletListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def connect(self) -> Wallet:
        """Load the configured account. Raises ValueError without a usable key."""
        if not self._private_key:
            raise ValueError("no wallet key configured")
        if self._wallet.is_connected:
            return self._wallet

        from eth_account import Account

        try:
            account = Account.from_key(self._private_key)
        except Exception as e:
            raise ValueError(f"invalid wallet key: {type(e).__name__}") from e

        logger.info(f"Wallet connected: {account.address[:10]}...")
        self._set(Wallet.connected(account.address, account))
        return self._wallet

    def disconnect(self) -> Wallet:
        if self._wallet.state == WalletState.CONNECTED:
            logger.info("Wallet disconnected")
            self._set(Wallet.disconnected())
        return self._wallet

    def set_wallet(self, wallet: Wallet) -> None:
        """Swap in an already-built handle (other signers, tests)."""
        self._set(wallet)

    def _set(self, wallet: Wallet) -> None:
        self._wallet = wallet
        for listener in list(self._listeners):
            listener(wallet)
