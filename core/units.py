"""
Units - Decimal amounts, raw token integers, and user-typed input.

All financial amounts are decimal.Decimal. Raw uint256 values from the chain
are converted with the token's decimals in a wide decimal context so large
balances never lose digits.
"""

import re
from decimal import Decimal, ROUND_DOWN, localcontext

# uint256 has 78 decimal digits
_PRECISION = 80

_DECIMAL_INPUT = re.compile(r"^\d*\.?\d*$")


def from_raw(raw: int, decimals: int) -> Decimal:
    """Convert a raw token integer (e.g. wei) into a decimal amount."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)


def to_raw(amount: Decimal, decimals: int) -> int:
    """Convert a decimal amount into a raw token integer, truncating dust."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int(amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN))


def validate_decimal_input(text: str, decimals: int) -> bool:
    """
    Whether `text` is an acceptable partially-typed amount.

    Accepts digits with at most one decimal point and no more fraction
    digits than the token supports. Empty text and a lone "." are accepted
    so the user can keep typing.
    """
    if not _DECIMAL_INPUT.match(text):
        return False
    _, _, fraction = text.partition(".")
    return len(fraction) <= decimals


def parse_decimal_input(text: str) -> Decimal:
    """Value of an already-validated input; empty or "." counts as zero."""
    if text in ("", "."):
        return Decimal(0)
    return Decimal(text)


class DecimalInput:
    """A text field holding a token amount: the raw text plus its value."""

    def __init__(self, decimals: int):
        self.decimals = decimals
        self.text: str = ""
        self.value: Decimal = Decimal(0)

    def set(self, text: str) -> bool:
        """Replace the text if valid. Returns False and keeps the old text otherwise."""
        text = text.strip()
        if not validate_decimal_input(text, self.decimals):
            return False
        self.text = text
        self.value = parse_decimal_input(text)
        return True

    def clear(self) -> None:
        self.set("")


def ellipsis_between(head: int, tail: int, text: str) -> str:
    """Shorten `text` to its first `head` and last `tail` chars joined by an ellipsis."""
    if len(text) <= head + tail:
        return text
    return f"{text[:head]}…{text[-tail:]}"


def short_address(address: str) -> str:
    """0x1234…abcd style display of a wallet address."""
    body = address[2:] if address.startswith("0x") else address
    return "0x" + ellipsis_between(4, 4, body)
