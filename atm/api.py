import logging
import os
import platform
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse

from .domain import is_valid_account_number
from .errors import AccountError, ErrorKind
from .schemas import (
    AccountCreatedResponse,
    BalanceResponse,
    CreateAccountBody,
    Money,
    TransactionResponse,
)
from .service import AccountService

log = logging.getLogger(__name__)
router = APIRouter()


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_service(request: Request) -> AccountService:
    return request.app.state.service


def invalid_account_number(provided: str) -> AccountError:
    return AccountError(
        ErrorKind.INVALID_FORMAT,
        "Invalid account number format. Account number must be 6-12 digits.",
        details={"provided": provided},
    )


def account_number_param(account_number: str = Path(..., description="6-12 digit account number")) -> str:
    if not is_valid_account_number(account_number):
        raise invalid_account_number(account_number)
    return account_number.strip()


# ---- system ----

@router.get("/")
def root(request: Request):
    settings = request.app.state.settings
    info = request.app.state.store.seeding_info()
    return {
        "name": "ATM System API",
        "version": settings.api_version,
        "environment": settings.env,
        "description": "Balance inquiry, withdrawal and deposit over an in-memory account store",
        "demo": {
            "isSeeded": info.is_seeded,
            "accountCount": info.account_count,
            "seedEndpoint": "POST /seed (to initialize demo accounts)",
        },
        "demoAccounts": (
            [a.model_dump() for a in info.accounts] if info.is_seeded
            else "Use POST /seed to initialize demo accounts"
        ),
        "endpoints": {
            "seed": "POST /seed",
            "seedStatus": "GET /seed",
            "health": "GET /health",
            "createAccount": "POST /accounts",
            "balance": "GET /accounts/{account_number}/balance",
            "withdraw": "POST /accounts/{account_number}/withdraw",
            "deposit": "POST /accounts/{account_number}/deposit",
        },
        "docs": "/docs",
    }


@router.get("/health")
def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "OK",
        "message": "ATM System is running",
        "timestamp": utcnow_iso(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": settings.env,
        "version": settings.api_version,
        "system": {
            "platform": platform.system().lower(),
            "pythonVersion": platform.python_version(),
            "pid": os.getpid(),
        },
    }


@router.get("/ready")
def ready():
    return {"status": "READY", "timestamp": utcnow_iso()}


@router.get("/live")
def live():
    return {"status": "ALIVE", "timestamp": utcnow_iso()}


def _seed_payload(info) -> dict:
    return {
        "isSeeded": info.is_seeded,
        "accountCount": info.account_count,
        "accounts": [a.model_dump() for a in info.accounts],
    }


@router.get("/seed")
def seed_status(request: Request):
    info = request.app.state.store.seeding_info()
    return {
        **_seed_payload(info),
        "message": "Demo accounts are seeded" if info.is_seeded else "Demo accounts not seeded yet",
        "timestamp": utcnow_iso(),
    }


@router.post("/seed")
def seed(request: Request):
    store = request.app.state.store
    if store.seeding_info().is_seeded:
        return {
            **_seed_payload(store.seeding_info()),
            "message": "Demo accounts already seeded",
            "status": "already_seeded",
            "timestamp": utcnow_iso(),
        }
    added = store.seed()
    log.info("seed requested: %d demo accounts added", added)
    return JSONResponse(status_code=201, content={
        **_seed_payload(store.seeding_info()),
        "message": "Demo accounts seeded successfully",
        "status": "seeded",
        "timestamp": utcnow_iso(),
    })


# ---- accounts ----

@router.post("/accounts", status_code=201, response_model=AccountCreatedResponse)
def create_account(body: CreateAccountBody, service: AccountService = Depends(get_service)):
    account = service.create_account(body.account_number, body.initial_balance).unwrap()
    return AccountCreatedResponse(
        account_number=account.account_number,
        balance=account.balance,
        timestamp=utcnow_iso(),
    )


@router.get("/accounts/{account_number}/balance", response_model=BalanceResponse)
def get_balance(
    account_number: str = Depends(account_number_param),
    service: AccountService = Depends(get_service),
):
    account = service.get_balance(account_number).unwrap()
    return BalanceResponse(account_number=account.account_number, balance=account.balance)


@router.post("/accounts/{account_number}/withdraw", response_model=TransactionResponse)
def withdraw(
    body: Money,
    account_number: str = Depends(account_number_param),
    service: AccountService = Depends(get_service),
):
    account = service.withdraw(account_number, body.amount).unwrap()
    return TransactionResponse(
        account_number=account.account_number,
        balance=account.balance,
        transaction="withdrawal",
        amount=body.amount,
    )


@router.post("/accounts/{account_number}/deposit", response_model=TransactionResponse)
def deposit(
    body: Money,
    account_number: str = Depends(account_number_param),
    service: AccountService = Depends(get_service),
):
    account = service.deposit(account_number, body.amount).unwrap()
    return TransactionResponse(
        account_number=account.account_number,
        balance=account.balance,
        transaction="deposit",
        amount=body.amount,
    )
