"""
Result - Outcome of every remote ledger call.

Remote reads and writes never raise into the polling core. They return
Ok(value) or Err(reason), and callers branch on `is_ok`.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    reason: str

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[Any], Err]


@dataclass(frozen=True)
class TxReceipt:
    """Receipt of a confirmed on-chain transaction."""
    tx_hash: str
    gas_used: int = 0
    gas_price_wei: int = 0       # effectiveGasPrice from receipt
    block_number: int = 0
