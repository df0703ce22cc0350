import math

import pytest

from atm.domain import (
    Account,
    is_valid_account_number,
    is_valid_amount,
    is_valid_balance,
    make_account,
    round_currency,
    validate_account,
)
from atm.errors import AccountError, ErrorKind


# ---------- account number ----------

@pytest.mark.parametrize("good", ["123456", "123456789", "123456789012", " 123456 ", "\t987654321\n"])
def test_valid_account_numbers(good):
    assert is_valid_account_number(good)


@pytest.mark.parametrize("bad", [
    "12345",            # too short
    "1234567890123",    # too long
    "12345a",
    "123-456",
    "123 456",
    "",
    "   ",
    "١٢٣٤٥٦",           # non-ASCII digits
    None,
    123456789,
])
def test_invalid_account_numbers(bad):
    assert not is_valid_account_number(bad)


# ---------- balance / amount ----------

@pytest.mark.parametrize("value", [0, 0.0, 100.50, 1_000_000])
def test_valid_balances(value):
    assert is_valid_balance(value)


@pytest.mark.parametrize("value", [-100, -0.01, math.nan, math.inf, -math.inf, "10", None, True])
def test_invalid_balances(value):
    assert not is_valid_balance(value)


@pytest.mark.parametrize("value", [0.01, 100.50, 1_000_000])
def test_valid_amounts(value):
    assert is_valid_amount(value)


@pytest.mark.parametrize("value", [0, 0.0, -100, -0.01, math.nan, math.inf, -math.inf, "5", True])
def test_invalid_amounts(value):
    assert not is_valid_amount(value)


# ---------- rounding ----------

@pytest.mark.parametrize("value, expected", [
    (0.005, 0.01),
    (100.123, 100.12),
    (100.126, 100.13),
    (1000 - 250.123, 749.88),
    (0.0001, 0.0),
    (42, 42.0),
    (-0.005, -0.01),    # half away from zero
])
def test_round_currency(value, expected):
    assert round_currency(value) == expected


@pytest.mark.parametrize("value", [0.1 + 0.2, 1.005, 2.675, 123456.789, 9999999.995, -3.14159, 1e17])
def test_round_currency_idempotent(value):
    once = round_currency(value)
    assert round_currency(once) == once


def test_round_currency_passes_non_finite_through():
    assert math.isnan(round_currency(math.nan))
    assert round_currency(math.inf) == math.inf


# ints beyond float range must be rejected, not raise OverflowError
HUGE = 10**400


def test_huge_ints_are_not_valid_money():
    assert not is_valid_amount(HUGE)
    assert not is_valid_balance(HUGE)


def test_round_currency_passes_huge_ints_through():
    assert round_currency(HUGE) == HUGE


def test_validate_account_rejects_huge_balance():
    result = validate_account({"account_number": "123456789", "balance": HUGE})
    assert result.errors == ["Balance must be a valid number (not NaN or Infinity)"]


# ---------- account validation ----------

def test_validate_account_ok():
    result = validate_account({"account_number": "123456789", "balance": 10.5})
    assert result.valid
    assert result.errors == []


def test_validate_account_accepts_model():
    assert validate_account(Account(account_number="123456789", balance=0)).valid


def test_validate_account_collects_every_error():
    result = validate_account({"account_number": "12", "balance": -1})
    assert not result.valid
    assert result.errors == [
        "Account number must be a non-empty string with valid format",
        "Balance must be a valid number (not NaN or Infinity)",
    ]


@pytest.mark.parametrize("obj, message", [
    ({"balance": 1}, "Account number is required"),
    ({"account_number": "", "balance": 1}, "Account number is required"),
    ({"account_number": 123456789, "balance": 1}, "Account number must be a string"),
    ({"account_number": "123456789"}, "Balance is required"),
    ({"account_number": "123456789", "balance": "100"}, "Balance must be a number"),
    ({"account_number": "123456789", "balance": math.nan}, "Balance must be a valid number (not NaN or Infinity)"),
])
def test_validate_account_messages(obj, message):
    result = validate_account(obj)
    assert not result.valid
    assert result.errors == [message]


@pytest.mark.parametrize("obj", [None, "123456789", 42, ["123456789", 10]])
def test_validate_account_rejects_non_objects(obj):
    assert validate_account(obj).errors == ["Account must be an object"]


def test_make_account_normalizes():
    account = make_account("  123456789 ", 100.126)
    assert account == Account(account_number="123456789", balance=100.13)


def test_make_account_rejects_invalid_data():
    with pytest.raises(AccountError) as excinfo:
        make_account("abc", -1)
    assert excinfo.value.kind is ErrorKind.VALIDATION_FAILED
    assert len(excinfo.value.details) == 2


def test_account_is_immutable():
    account = Account(account_number="123456789", balance=1)
    with pytest.raises(Exception):
        account.balance = 5
