"""Error taxonomy and the Ok/Err result type returned by the store and service."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    VALIDATION_FAILED = "VALIDATION_FAILED"


# kind -> (http status, response code)
ERROR_STATUS = {
    ErrorKind.INVALID_INPUT: (400, "INVALID_INPUT"),
    ErrorKind.INVALID_FORMAT: (400, "INVALID_ACCOUNT_NUMBER"),
    ErrorKind.INVALID_AMOUNT: (400, "INVALID_AMOUNT"),
    ErrorKind.NOT_FOUND: (404, "ACCOUNT_NOT_FOUND"),
    ErrorKind.INSUFFICIENT_FUNDS: (400, "INSUFFICIENT_FUNDS"),
    ErrorKind.ALREADY_EXISTS: (400, "ACCOUNT_ALREADY_EXISTS"),
    ErrorKind.VALIDATION_FAILED: (400, "VALIDATION_ERROR"),
}


class AccountError(Exception):
    """A business failure. Carried inside Err; raised only at the HTTP boundary."""

    def __init__(self, kind: ErrorKind, message: str, details=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind][0]

    @property
    def code(self) -> str:
        return ERROR_STATUS[self.kind][1]

    def __repr__(self) -> str:
        return f"AccountError({self.kind.value}, {self.message!r})"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AccountError

    ok = False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]


def err(kind: ErrorKind, message: str, details=None) -> Err:
    return Err(AccountError(kind, message, details))
