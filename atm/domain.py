import math
import re
from collections.abc import Mapping
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict

from .errors import AccountError, ErrorKind

ACCOUNT_NUMBER_RE = re.compile(r"^[0-9]{6,12}$")

# above this every float is already a whole number of cents
_EXACT_CENTS_LIMIT = 2 ** 52


class Account(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_number: str
    balance: float


class ValidationResult(NamedTuple):
    valid: bool
    errors: list[str]


def is_number(n) -> bool:
    return isinstance(n, Real) and not isinstance(n, bool)


def is_finite(n) -> bool:
    """math.isfinite that treats ints too large for a float as non-finite."""
    try:
        return math.isfinite(n)
    except OverflowError:
        return False


def is_valid_account_number(account_number) -> bool:
    """6-12 ASCII digits once surrounding whitespace is trimmed."""
    if not isinstance(account_number, str):
        return False
    return ACCOUNT_NUMBER_RE.fullmatch(account_number.strip()) is not None


def is_valid_balance(balance) -> bool:
    return is_number(balance) and is_finite(balance) and balance >= 0


def is_valid_amount(amount) -> bool:
    return is_number(amount) and is_finite(amount) and amount > 0


def round_currency(value: float) -> float:
    """
    Round to 2 decimals, half away from zero, on the value scaled by 100.

    0.005 -> 0.01, 100.123 -> 100.12, 100.126 -> 100.13. Non-finite values
    (and ints too large for a float) are returned unchanged.
    """
    scaled = value * 100
    if not is_finite(scaled) or abs(scaled) >= _EXACT_CENTS_LIMIT:
        return value
    cents = Decimal(scaled).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(cents / 100)


def validate_account(obj) -> ValidationResult:
    """Check an Account (or a mapping shaped like one), collecting every problem."""
    if isinstance(obj, Account):
        obj = obj.model_dump()
    if not isinstance(obj, Mapping):
        return ValidationResult(False, ["Account must be an object"])

    errors = []

    account_number = obj.get("account_number")
    if not account_number:
        errors.append("Account number is required")
    elif not isinstance(account_number, str):
        errors.append("Account number must be a string")
    elif not is_valid_account_number(account_number):
        errors.append("Account number must be a non-empty string with valid format")

    balance = obj.get("balance")
    if balance is None:
        errors.append("Balance is required")
    elif not is_number(balance):
        errors.append("Balance must be a number")
    elif not is_valid_balance(balance):
        errors.append("Balance must be a valid number (not NaN or Infinity)")

    return ValidationResult(not errors, errors)


def make_account(account_number: str, balance: float) -> Account:
    """Validate and normalize (trimmed number, rounded balance) into an Account."""
    result = validate_account({"account_number": account_number, "balance": balance})
    if not result.valid:
        raise AccountError(
            ErrorKind.VALIDATION_FAILED,
            f"Invalid account data: {', '.join(result.errors)}",
            details=result.errors,
        )
    return Account(account_number=account_number.strip(), balance=round_currency(balance))
