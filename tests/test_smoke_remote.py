
import os
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
import httpx

# ---- Configuration ----
BASE_URL = os.environ.get("ATM_API_URL")

@pytest.fixture(scope="module", autouse=True)
def require_base_url():
    if not BASE_URL:
        pytest.skip("Set ATM_API_URL to a deployed API, e.g. https://<app>.herokuapp.com")

@pytest.fixture()
def client():
    # Small timeout to fail fast; adjust if the dyno is sleepy
    with httpx.Client(base_url=BASE_URL, timeout=10.0) as c:
        yield c

def acct() -> str:
    return str(uuid.uuid4().int)[:12]

# ---- Helpers ----
def create_account(client: httpx.Client, account_number: str, initial_balance: float | int = 0):
    return client.post("/accounts", json={"account_number": account_number, "initial_balance": initial_balance})

def get_balance(client: httpx.Client, account_number: str) -> tuple[int, float | None]:
    r = client.get(f"/accounts/{account_number}/balance")
    if r.status_code == 200:
        return 200, r.json()["balance"]
    return r.status_code, None

def deposit(client: httpx.Client, account_number: str, amount):
    return client.post(f"/accounts/{account_number}/deposit", json={"amount": amount})

def withdraw(client: httpx.Client, account_number: str, amount):
    return client.post(f"/accounts/{account_number}/withdraw", json={"amount": amount})

# ---- Tests ----

def test_health(client: httpx.Client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"

def test_create_then_get_balance(client: httpx.Client):
    a = acct()
    assert create_account(client, a, 12.34).status_code == 201
    code, bal = get_balance(client, a)
    assert code == 200
    assert bal == 12.34

def test_deposit_withdraw_and_overdraw(client: httpx.Client):
    a = acct()
    assert create_account(client, a).status_code == 201

    r = deposit(client, a, 100)
    assert r.status_code == 200
    assert r.json()["balance"] == 100.00

    r = withdraw(client, a, 40)
    assert r.status_code == 200
    assert r.json()["balance"] == 60.00

    r = withdraw(client, a, 1000)
    assert r.status_code == 400
    assert r.json()["code"] == "INSUFFICIENT_FUNDS"
    # Final balance remains unchanged
    _, bal = get_balance(client, a)
    assert bal == 60.00

def test_404_for_missing_account(client: httpx.Client):
    r = client.get(f"/accounts/{acct()}/balance")
    assert r.status_code == 404
    assert r.json()["code"] == "ACCOUNT_NOT_FOUND"

def test_content_type_enforcement(client: httpx.Client):
    a = acct()
    assert create_account(client, a).status_code == 201
    r = client.post(
        f"/accounts/{a}/deposit",
        content="amount=10",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_CONTENT_TYPE"

def test_rounding_edge_cases(client: httpx.Client):
    a = acct()
    assert create_account(client, a).status_code == 201
    # 0.005 -> half away from zero -> 0.01
    assert deposit(client, a, 0.005).status_code == 200
    _, bal = get_balance(client, a)
    assert bal == 0.01

def test_light_concurrency(client: httpx.Client):
    """
    Gentle parallel deposits to catch obvious race issues without overloading a hobby dyno.
    """
    a = acct()
    assert create_account(client, a).status_code == 201

    def do_deposit():
        return deposit(client, a, 0.10).status_code

    with ThreadPoolExecutor(max_workers=5) as ex:
        futures = [ex.submit(do_deposit) for _ in range(30)]
        codes = [f.result() for f in as_completed(futures)]
    # allow a few flukes on cold starts but expect most 200s
    ok = sum(c == 200 for c in codes)
    assert ok >= 28
    _, bal = get_balance(client, a)
    assert bal == round(ok * 0.10, 2)
