"""
Chain Constants - Fantom tokens, minter, and polling cadence.

Frozen dataclasses: nothing here changes at runtime. Deployment-specific
values (RPC URL, minter address, block time) can be overridden from the
environment in main.py.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Final


@dataclass(frozen=True)
class Erc20Token:
    """An ERC20 token. Identity is the address."""
    address: str
    decimals: int = field(compare=False)
    symbol: str = field(default="", compare=False)


# ============================================================
# FANTOM OPERA
# ============================================================

FANTOM_CHAIN_ID: Final[int] = 250
FANTOM_RPC_URL: Final[str] = "https://rpc.ftm.tools"
FANTOM_EXPLORER: Final[str] = "https://ftmscan.com"

# Seconds between blocks; polling cadence is derived from it.
FANTOM_BLOCK_TIME: Final[float] = 1.0

FANTOM_DAI = Erc20Token(
    address="0x8D11eC38a3EB5E956B052f67Da8Bdc9bef8Abf3E",
    decimals=18,
    symbol="DAI",
)

FANTOM_TOR = Erc20Token(
    address="0x74E23dF9110Aa9eA0b6ff2fAEE01e740CA1c642e",
    decimals=18,
    symbol="TOR",
)

# Spender for both tokens: mints Tor from Dai and redeems Tor back to Dai.
TOR_MINTER_ADDRESS: Final[str] = "0x9b0c6FfA7d0Ec29EAb516d3F2dC809eE43DD60ca"


# ============================================================
# POLLING POLICY
# ============================================================

@dataclass(frozen=True)
class PollingPolicy:
    """How often each tracker hits the chain, in blocks."""

    BALANCE_INTERVAL_BLOCKS: Final[int] = 10     # Balances drift slowly; poll every 10 blocks
    ALLOWANCE_INTERVAL_BLOCKS: Final[int] = 1    # Allowance is awaited after approve; poll every block

    # Approving "unlimited" in practice; disapproving sets the allowance to zero.
    APPROVE_AMOUNT: Final[Decimal] = Decimal(1_000_000)
    DISAPPROVE_AMOUNT: Final[Decimal] = Decimal(0)


POLLING = PollingPolicy()
