"""Ledger protocol - the remote calls the trackers and the mint flow depend on."""

from decimal import Decimal
from typing import Protocol

from .constants import Erc20Token
from .result import Result
from .wallet import Wallet


class Ledger(Protocol):
    """
    Asynchronous access to token balances, allowances and the minter.

    Every call may fail transiently and returns Err instead of raising.
    Reads must be safe to retry indefinitely.
    """

    async def balance_of(self, wallet: Wallet, token: Erc20Token) -> Result:
        """Ok(Decimal) balance of `wallet` in `token`."""
        ...

    async def allowance(self, wallet: Wallet, token: Erc20Token, spender: str) -> Result:
        """Ok(Decimal) amount `spender` may move from `wallet`."""
        ...

    async def approve(self, wallet: Wallet, token: Erc20Token, spender: str, amount: Decimal) -> Result:
        """Ok(None) once the approval transaction is confirmed."""
        ...

    async def mint_with_reserve(self, wallet: Wallet, amount: Decimal) -> Result:
        """Ok(TxReceipt) after depositing `amount` reserve tokens for stable tokens."""
        ...

    async def redeem_to_reserve(self, wallet: Wallet, amount: Decimal) -> Result:
        """Ok(TxReceipt) after burning `amount` stable tokens for reserve tokens."""
        ...
