# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from atm.app import create_app
from atm.config import Settings
from atm.service import AccountService
from atm.store import AccountStore


@pytest.fixture()
def store():
    # fresh store per test, seeded with the demo accounts
    s = AccountStore()
    s.seed()
    return s


@pytest.fixture()
def service(store):
    return AccountService(store)


@pytest.fixture()
def settings():
    return Settings(env="test", disable_seed=True)


@pytest.fixture()
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
