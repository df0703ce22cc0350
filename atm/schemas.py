from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

from .domain import is_valid_account_number, is_valid_amount, is_valid_balance, round_currency

Number = Union[StrictInt, StrictFloat]


class Money(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Number = Field(..., description="Positive amount (> 0)")

    @field_validator("amount")
    @classmethod
    def positive(cls, v):
        if not is_valid_amount(v):
            raise ValueError("amount must be greater than zero and a valid number")
        return v


class CreateAccountBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_number: StrictStr
    initial_balance: Number = 0

    @field_validator("account_number")
    @classmethod
    def valid_account_number(cls, v: str) -> str:
        if not is_valid_account_number(v):
            raise ValueError("account number must be 6-12 digits")
        return v.strip()

    @field_validator("initial_balance")
    @classmethod
    def non_negative(cls, v):
        if not is_valid_balance(v):
            raise ValueError("initial_balance must be a non-negative number")
        return v


class BalanceResponse(BaseModel):
    account_number: str
    balance: float

    @field_validator("balance")
    @classmethod
    def two_decimals(cls, v: float) -> float:
        return round_currency(v)


class TransactionResponse(BalanceResponse):
    transaction: str
    amount: float

    @field_validator("amount")
    @classmethod
    def amount_two_decimals(cls, v: float) -> float:
        return round_currency(v)


class AccountCreatedResponse(BalanceResponse):
    transaction: str = "account_created"
    timestamp: str
