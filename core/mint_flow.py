"""
Mint Flow - Dai → Tor minting and Tor → Dai redeeming.

Wires two balance trackers and two allowance trackers (one per token) to the
state the mint page shows: which side is being sold, what was typed, and
which submit button is live.

Button rules (per active side):
- wallet not connected   → "Connect wallet" (disabled)
- allowance UPDATING     → "Updating..."    (disabled)
- allowance NO_ALLOWANCE → "Approve"
- allowance HAS_ALLOWANCE→ "Mint" / "Redeem" with the typed amount
"""

import logging
from dataclasses import dataclass
from enum import Enum

from .allowance import AllowanceState, AllowanceTracker
from .balance import BalanceTracker
from .constants import FANTOM_BLOCK_TIME, FANTOM_DAI, FANTOM_TOR, TOR_MINTER_ADDRESS, Erc20Token
from .ledger import Ledger
from .result import Result
from .units import DecimalInput
from .wallet import WalletSession

logger = logging.getLogger("hector.mint")


class MintView(str, Enum):
    MINT = "mint"
    REDEEM = "redeem"


class SubmitUnavailable(Exception):
    """Submit was requested while the button is disabled."""
    pass


@dataclass(frozen=True)
class SubmitButton:
    label: str
    enabled: bool


@dataclass
class FlowSide:
    """One token's trackers and input."""
    token: Erc20Token
    balance: BalanceTracker
    allowance: AllowanceTracker
    input: DecimalInput


class MintFlow:
    """
    Usage:
        flow = MintFlow(session, ledger)
        flow.start()                      # inside the event loop
        flow.switch_view(MintView.REDEEM)
        flow.set_input("12.5")
        button = flow.submit_button()
        result = await flow.submit()
        flow.close()
    """

    def __init__(
        self,
        session: WalletSession,
        ledger: Ledger,
        reserve: Erc20Token = FANTOM_DAI,
        stable: Erc20Token = FANTOM_TOR,
        spender: str = TOR_MINTER_ADDRESS,
        block_time: float = FANTOM_BLOCK_TIME,
    ):
        self.session = session
        self.ledger = ledger
        self.view: MintView = MintView.MINT

        def _side(token: Erc20Token) -> FlowSide:
            return FlowSide(
                token=token,
                balance=BalanceTracker(token, session, ledger, block_time=block_time),
                allowance=AllowanceTracker(token, session, ledger, spender=spender, block_time=block_time),
                input=DecimalInput(token.decimals),
            )

        self.reserve = _side(reserve)
        self.stable = _side(stable)

    # ============================================================
    # LIFECYCLE
    # ============================================================

    def _trackers(self):
        for side in (self.reserve, self.stable):
            yield side.balance
            yield side.allowance

    def start(self) -> None:
        for tracker in self._trackers():
            tracker.start()
        logger.info("Mint flow started")

    def close(self) -> None:
        for tracker in self._trackers():
            tracker.close()
        logger.info("Mint flow closed")

    # ============================================================
    # PAGE STATE
    # ============================================================

    @property
    def selling(self) -> FlowSide:
        """The side whose tokens leave the wallet in the current view."""
        return self.reserve if self.view == MintView.MINT else self.stable

    @property
    def buying(self) -> FlowSide:
        return self.stable if self.view == MintView.MINT else self.reserve

    def switch_view(self, view: MintView) -> None:
        view = MintView(view)
        self.selling_for(view).balance.refresh_now()
        self.reserve.input.clear()
        self.stable.input.clear()
        self.view = view

    def selling_for(self, view: MintView) -> FlowSide:
        return self.reserve if view == MintView.MINT else self.stable

    def set_input(self, text: str) -> bool:
        """Type into the selling field. Rejected text leaves the field as it was."""
        return self.selling.input.set(text)

    def buying_display(self) -> str:
        # Tor is minted and redeemed 1:1 against Dai
        amount = self.selling.input.value
        return f"≈ {amount}" if amount > 0 else "0.00"

    def submit_button(self) -> SubmitButton:
        if not self.session.wallet.is_connected:
            return SubmitButton("Connect wallet", enabled=False)
        state = self.selling.allowance.state
        if state == AllowanceState.NO_ALLOWANCE:
            return SubmitButton("Approve", enabled=True)
        if state == AllowanceState.HAS_ALLOWANCE:
            return SubmitButton("Mint" if self.view == MintView.MINT else "Redeem", enabled=True)
        return SubmitButton("Updating...", enabled=False)

    # ============================================================
    # ACTIONS
    # ============================================================

    async def submit(self) -> Result:
        """
        Run whatever the submit button currently offers.

        Raises SubmitUnavailable when the button is disabled or the amount is
        empty. Ledger failures come back as Err.
        """
        button = self.submit_button()
        if not button.enabled:
            raise SubmitUnavailable(button.label)

        side = self.selling
        allowance = side.allowance.allowance
        if allowance.state == AllowanceState.NO_ALLOWANCE:
            return await allowance.approve()

        amount = side.input.value
        if amount <= 0:
            raise SubmitUnavailable("enter an amount")

        wallet = self.session.wallet
        if self.view == MintView.MINT:
            result = await self.ledger.mint_with_reserve(wallet, amount)
        else:
            result = await self.ledger.redeem_to_reserve(wallet, amount)

        if result.is_ok:
            logger.info(f"{self.view.value} {amount} {side.token.symbol}: {result.value.tx_hash}")
            self.reserve.balance.refresh_now()
            self.stable.balance.refresh_now()
        else:
            logger.info(f"{self.view.value} {amount} {side.token.symbol} failed: {result.reason}")
        return result

    async def disapprove(self) -> Result:
        allowance = self.selling.allowance.allowance
        if allowance.state != AllowanceState.HAS_ALLOWANCE:
            raise SubmitUnavailable(allowance.state.value)
        return await allowance.disapprove()

    def refresh(self) -> None:
        self.reserve.balance.refresh_now()
        self.stable.balance.refresh_now()

    def get_status(self) -> dict:
        """Everything the mint page renders."""
        wallet = self.session.wallet
        button = self.submit_button()
        return {
            "view": self.view.value,
            "wallet_state": wallet.state.value,
            "selling": {
                "symbol": self.selling.token.symbol,
                "input": self.selling.input.text,
                "balance": str(self.selling.balance.current_balance()),
                "allowance": self.selling.allowance.state.value,
            },
            "buying": {
                "symbol": self.buying.token.symbol,
                "display": self.buying_display(),
            },
            "balances": {
                self.reserve.token.symbol: str(self.reserve.balance.current_balance()),
                self.stable.token.symbol: str(self.stable.balance.current_balance()),
            },
            "submit": {"label": button.label, "enabled": button.enabled},
        }
