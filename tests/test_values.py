"""Tests for Result, Perishable and unit helpers."""

from decimal import Decimal

import pytest

from core.constants import Erc20Token
from core.perishable import Fresh, Stale, invalidate, is_truly_fresh
from core.result import Err, Ok
from core.units import (
    DecimalInput,
    ellipsis_between,
    from_raw,
    short_address,
    to_raw,
    validate_decimal_input,
)


def test_result_variants():
    assert Ok(Decimal(5)).is_ok
    assert Ok(Decimal(5)).value == Decimal(5)
    assert not Err("rpc down").is_ok
    assert Err("rpc down").reason == "rpc down"


def test_invalidate_keeps_last_value():
    stale = invalidate(Fresh(Decimal("12.5")))
    assert isinstance(stale, Stale)
    assert not stale.is_fresh
    assert stale.latest == Decimal("12.5")


def test_invalidate_stale_is_idempotent():
    assert invalidate(Stale(Decimal(3))) == Stale(Decimal(3))


class TestIsTrulyFresh:
    def test_first_observation_is_fresh(self):
        assert is_truly_fresh(None, Decimal(0))

    def test_equal_to_stale_is_not_fresh(self):
        assert not is_truly_fresh(Stale(Decimal(0)), Decimal(0))

    def test_changed_value_is_fresh(self):
        assert is_truly_fresh(Stale(Decimal(0)), Decimal(1_000_000))

    def test_compares_numerically(self):
        assert not is_truly_fresh(Stale(Decimal("1.0")), Decimal("1.00"))


class TestRawConversion:
    def test_from_raw_18_decimals(self):
        assert from_raw(1_500_000_000_000_000_000, 18) == Decimal("1.5")

    def test_to_raw_truncates_dust(self):
        assert to_raw(Decimal("1.0000009"), 6) == 1_000_000

    def test_large_values_keep_every_digit(self):
        raw = 2**256 - 1
        assert to_raw(from_raw(raw, 18), 18) == raw

    def test_approve_amount(self):
        assert to_raw(Decimal(1_000_000), 18) == 10**24


@pytest.mark.parametrize("text,ok", [
    ("", True),
    (".", True),
    ("12", True),
    ("12.", True),
    ("0.123456", True),
    ("0.1234567", False),
    ("1.2.3", False),
    ("-1", False),
    ("1e5", False),
    ("abc", False),
])
def test_validate_decimal_input(text, ok):
    assert validate_decimal_input(text, 6) is ok


class TestDecimalInput:
    def test_accepts_and_parses(self):
        field = DecimalInput(18)
        assert field.set("12.5")
        assert field.text == "12.5"
        assert field.value == Decimal("12.5")

    def test_rejected_text_keeps_previous(self):
        field = DecimalInput(2)
        field.set("1.25")
        assert not field.set("1.255")
        assert field.text == "1.25"
        assert field.value == Decimal("1.25")

    def test_partial_input_is_zero(self):
        field = DecimalInput(18)
        field.set(".")
        assert field.value == 0

    def test_clear(self):
        field = DecimalInput(18)
        field.set("7")
        field.clear()
        assert field.text == ""
        assert field.value == 0


def test_ellipsis_between():
    assert ellipsis_between(4, 4, "abcdefghijkl") == "abcd…ijkl"
    assert ellipsis_between(4, 4, "abcdefgh") == "abcdefgh"


def test_short_address():
    assert short_address("0xA11cE00000000000000000000000000000000001") == "0xA11c…0001"


def test_token_identity_is_the_address():
    dai = Erc20Token(address="0x00000000000000000000000000000000000000da", decimals=18, symbol="DAI")
    relabelled = Erc20Token(address=dai.address, decimals=18, symbol="Dai Stablecoin")
    other = Erc20Token(address="0x0000000000000000000000000000000000000070", decimals=18, symbol="DAI")
    assert dai == relabelled
    assert hash(dai) == hash(relabelled)
    assert dai != other
