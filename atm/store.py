import logging
from contextlib import contextmanager
from threading import RLock
from typing import Iterator, NamedTuple

from .domain import Account, make_account, round_currency, validate_account
from .errors import AccountError, ErrorKind, Ok, Result, err

log = logging.getLogger(__name__)

DEMO_ACCOUNTS: tuple[tuple[str, float], ...] = (
    ("123456789", 1000.00),
    ("987654321", 2500.50),
    ("555666777", 100.25),
    ("111222333", 5000.00),
    ("999888777", 750.75),
)


class SeedingInfo(NamedTuple):
    is_seeded: bool
    account_count: int
    accounts: list[Account]


class AccountStore:
    """
    In-memory account table.

    One instance per application; it is the only owner of Account state.
    Every method takes the store lock, and `locked()` lets callers hold it
    across a read-compute-write sequence.
    """

    def __init__(self, demo_accounts=DEMO_ACCOUNTS):
        self._accounts: dict[str, Account] = {}
        self._lock = RLock()
        self._demo_accounts = tuple(demo_accounts)

    @contextmanager
    def locked(self) -> Iterator["AccountStore"]:
        with self._lock:
            yield self

    def get(self, account_number: str) -> Account | None:
        if not isinstance(account_number, str) or not account_number:
            return None
        with self._lock:
            return self._accounts.get(account_number.strip())

    def exists(self, account_number: str) -> bool:
        return self.get(account_number) is not None

    def create(self, account_number: str, initial_balance: float) -> Result[Account]:
        if not isinstance(account_number, str):
            return err(ErrorKind.VALIDATION_FAILED, "Invalid account data: Account number must be a string")
        key = account_number.strip()
        with self._lock:
            if key in self._accounts:
                log.info("create conflict account=%s", key)
                return err(ErrorKind.ALREADY_EXISTS, f"Account {key} already exists")
            try:
                account = make_account(key, initial_balance)
            except AccountError as e:
                log.info("create rejected account=%s: %s", key, e.message)
                return err(e.kind, e.message, e.details)
            self._accounts[key] = account
        log.info("create account=%s balance=%.2f", key, account.balance)
        return Ok(account)

    def update(self, account: Account) -> Result[Account]:
        result = validate_account(account)
        if not result.valid:
            return err(
                ErrorKind.VALIDATION_FAILED,
                f"Cannot update account: {', '.join(result.errors)}",
                result.errors,
            )
        updated = Account(account_number=account.account_number.strip(), balance=round_currency(account.balance))
        with self._lock:
            if updated.account_number not in self._accounts:
                return err(ErrorKind.NOT_FOUND, f"Account {updated.account_number} does not exist")
            self._accounts[updated.account_number] = updated
        return Ok(updated)

    def delete(self, account_number: str) -> bool:
        if not isinstance(account_number, str) or not account_number:
            return False
        with self._lock:
            removed = self._accounts.pop(account_number.strip(), None) is not None
        if removed:
            log.info("delete account=%s", account_number.strip())
        return removed

    def list(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def count(self) -> int:
        with self._lock:
            return len(self._accounts)

    def clear(self) -> None:
        with self._lock:
            self._accounts.clear()

    def seed(self) -> int:
        """Insert whichever demo accounts are missing; returns how many were added."""
        added = 0
        with self._lock:
            for account_number, balance in self._demo_accounts:
                if account_number in self._accounts:
                    continue
                self._accounts[account_number] = make_account(account_number, balance)
                added += 1
        log.info("seed inserted %d demo accounts", added)
        return added

    def reset(self) -> None:
        with self._lock:
            self.clear()
            self.seed()

    def seeding_info(self) -> SeedingInfo:
        with self._lock:
            demo = [self._accounts.get(n) for n, _ in self._demo_accounts]
            return SeedingInfo(
                is_seeded=bool(demo) and all(a is not None for a in demo),
                account_count=len(self._accounts),
                accounts=[a for a in demo if a is not None],
            )
