"""Test fixtures — in-memory Mongo and Redis behind the real app.

mongoengine talks to a mongomock client, so every test starts with an
empty database, and the Redis denylist lives in fakeredis. The app is
driven through httpx's ASGITransport, which skips the lifespan, so no
real connections are opened.
"""

import os

os.environ.setdefault("environment", "test")
os.environ.setdefault("bcrypt_rounds", "4")

import fakeredis
import mongomock
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongoengine import connect, disconnect

from app.connections.redis import set_redis
from main import app


@pytest.fixture()
def mongo():
    connect(
        "users_api_test",
        alias="default",
        host="mongodb://localhost",
        mongo_client_class=mongomock.MongoClient,
        tz_aware=True,
    )
    try:
        yield
    finally:
        disconnect(alias="default")


@pytest.fixture()
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    set_redis(client)
    try:
        yield client
    finally:
        set_redis(None)


@pytest_asyncio.fixture()
async def client(mongo, redis_client):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def register(client):
    """Factory: register a user through the API and return the response body."""

    async def _register(name="John Doe", email="john.doe@example.com", password="password123"):
        r = await client.post("/users", json={"name": name, "email": email, "password": password})
        assert r.status_code == 200, r.text
        return r.json()

    return _register
