import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from app.core.dependencies import get_access_token, get_blob_store, get_current_user, get_store
from app.core.errors import Unauthenticated
from app.main import app
from tests.fakes import FakeBlobStore, FakeDatabase, FakeStore

ALICE = {"id": "user-alice", "email": "alice@example.com", "user_metadata": {}}
BOB = {"id": "user-bob", "email": "bob@example.com", "user_metadata": {}}
CAROL = {"id": "user-carol", "email": "carol@example.com", "user_metadata": {}}

USERS_BY_TOKEN = {"token-alice": ALICE, "token-bob": BOB, "token-carol": CAROL}


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Keep slowapi counters out of the way between tests."""
    previous = app.state.limiter.enabled
    app.state.limiter.enabled = False
    yield
    app.state.limiter.enabled = previous


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def blob():
    return FakeBlobStore()


@pytest.fixture
def store_for(db):
    """store_for(user) -> the data store as seen by that user"""
    def _store(user):
        return FakeStore(db, user["id"] if user else None)
    return _store


@pytest.fixture
def alice_store(store_for):
    return store_for(ALICE)


@pytest.fixture
def bob_store(store_for):
    return store_for(BOB)


@pytest.fixture
def carol_store(store_for):
    return store_for(CAROL)


@pytest.fixture
def client(db, blob):
    def current_user_from_token(token: str = Depends(get_access_token)):
        user = USERS_BY_TOKEN.get(token)
        if user is None:
            raise Unauthenticated("Invalid or expired token")
        return user

    def store_for_caller(user: dict = Depends(get_current_user)):
        return FakeStore(db, user["id"])

    app.dependency_overrides[get_current_user] = current_user_from_token
    app.dependency_overrides[get_store] = store_for_caller
    app.dependency_overrides[get_blob_store] = lambda: blob
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
