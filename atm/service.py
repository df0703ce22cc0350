import logging

from .domain import (
    Account,
    is_number,
    is_valid_account_number,
    is_valid_amount,
    is_valid_balance,
    round_currency,
)
from .errors import ErrorKind, Ok, Result, err
from .store import AccountStore

log = logging.getLogger(__name__)


def _check_account_number(account_number) -> Result[str]:
    if not account_number or not isinstance(account_number, str):
        return err(ErrorKind.INVALID_INPUT, "Account number must be a non-empty string")
    trimmed = account_number.strip()
    if not is_valid_account_number(trimmed):
        return err(ErrorKind.INVALID_FORMAT, "Invalid account number format")
    return Ok(trimmed)


def _check_amount(amount) -> Result[float]:
    if not is_number(amount):
        return err(ErrorKind.INVALID_AMOUNT, "Amount must be a number")
    if not is_valid_amount(amount):
        return err(ErrorKind.INVALID_AMOUNT, "Amount must be greater than zero and a valid number")
    return Ok(amount)


class AccountService:
    """Balance inquiry, withdrawal, deposit and account creation over an AccountStore."""

    def __init__(self, store: AccountStore):
        self.store = store

    def get_balance(self, account_number: str) -> Result[Account]:
        checked = _check_account_number(account_number)
        if not checked.ok:
            return checked
        account = self.store.get(checked.value)
        if account is None:
            return err(ErrorKind.NOT_FOUND, f"Account {checked.value} not found")
        return Ok(account.model_copy())

    def withdraw(self, account_number: str, amount: float) -> Result[Account]:
        checked = _check_account_number(account_number)
        if not checked.ok:
            return checked
        valid_amount = _check_amount(amount)
        if not valid_amount.ok:
            return valid_amount

        with self.store.locked():
            account = self.store.get(checked.value)
            if account is None:
                return err(ErrorKind.NOT_FOUND, f"Account {checked.value} not found")
            if amount > account.balance:
                log.info("withdraw insufficient account=%s amount=%s balance=%.2f",
                         account.account_number, amount, account.balance)
                return err(
                    ErrorKind.INSUFFICIENT_FUNDS,
                    "Insufficient funds for withdrawal. "
                    f"Account: {account.account_number}, Requested: {amount}, Available: {account.balance}",
                )
            new_balance = round_currency(account.balance - amount)
            result = self.store.update(account.model_copy(update={"balance": new_balance}))

        if result.ok:
            log.info("withdraw account=%s amount=%s new_balance=%.2f",
                     account.account_number, amount, result.value.balance)
        return result

    def deposit(self, account_number: str, amount: float) -> Result[Account]:
        checked = _check_account_number(account_number)
        if not checked.ok:
            return checked
        valid_amount = _check_amount(amount)
        if not valid_amount.ok:
            return valid_amount

        with self.store.locked():
            account = self.store.get(checked.value)
            if account is None:
                return err(ErrorKind.NOT_FOUND, f"Account {checked.value} not found")
            new_balance = round_currency(account.balance + amount)
            result = self.store.update(account.model_copy(update={"balance": new_balance}))

        if result.ok:
            log.info("deposit account=%s amount=%s new_balance=%.2f",
                     account.account_number, amount, result.value.balance)
        return result

    def create_account(self, account_number: str, initial_balance: float = 0) -> Result[Account]:
        checked = _check_account_number(account_number)
        if not checked.ok:
            return checked
        if not is_valid_balance(initial_balance):
            return err(ErrorKind.VALIDATION_FAILED, "Initial balance must be a non-negative number")
        return self.store.create(checked.value, initial_balance)

    def account_exists(self, account_number: str) -> bool:
        if not _check_account_number(account_number).ok:
            return False
        return self.store.exists(account_number)

    def list_accounts(self) -> list[Account]:
        return self.store.list()

    def validate_amount(self, amount) -> bool:
        return is_valid_amount(amount)
