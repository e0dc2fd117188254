import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from course_portal.auth.session import SessionStore
from course_portal.config import Settings
from course_portal.main import create_app
from course_portal.store import StudentStore

TEST_SECRET = "test-session-secret"


def run(coro):
    """Drive a store coroutine from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture
def store():
    # In-memory MongoDB stand-in; a fresh database per test
    mongo = AsyncMongoMockClient()
    return StudentStore(mongo["course_portal_test"]["students"])


@pytest.fixture
async def indexed_store(store):
    await store.ensure_indexes()
    return store


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def app(store, sessions):
    return create_app(Settings(session_secret=TEST_SECRET), store=store, sessions=sessions)


@pytest.fixture
def client(app):
    # Entering the context runs startup, which creates the unique indexes
    with TestClient(app) as test_client:
        yield test_client


def signup(client, name="A", email="a@x.com", srn="s1", password="secret1", **kwargs):
    return client.post(
        "/signup",
        data={"name": name, "email": email, "srn": srn, "password": password},
        **kwargs,
    )
