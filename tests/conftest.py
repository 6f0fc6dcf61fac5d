import os

# Must be set before helpdesk modules build the engine
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_helpdesk.db"
os.environ.pop("REDIS_URL", None)

import httpx
import pytest

from helpdesk.client.api import HelpdeskClient
from helpdesk.main import app
from helpdesk.storage.db import Base, engine

BASE_URL = "http://test"


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def http(db):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def api(db):
    return HelpdeskClient(BASE_URL, transport=httpx.ASGITransport(app=app))


@pytest.fixture
def make_user(http):
    async def _make_user(username="john.doe", password="password123", role="USER", **extra):
        body = {
            "username": username,
            "fullName": extra.pop("fullName", username.replace(".", " ").title()),
            "email": f"{username}@telecel.com",
            "department": extra.pop("department", "Sales"),
            "role": role,
            "password": password,
            **extra,
        }
        r = await http.post("/api/users", json=body)
        assert r.status_code == 201, r.text
        return r.json()

    return _make_user


@pytest.fixture
def make_ticket(http):
    async def _make_ticket(user_id, title="Cannot access CRM", department="Sales", **extra):
        body = {
            "userId": user_id,
            "title": title,
            "description": extra.pop("description", "502 Bad Gateway on the CRM portal"),
            "department": department,
            **extra,
        }
        r = await http.post("/api/tickets", json=body)
        assert r.status_code == 201, r.text
        return r.json()

    return _make_ticket
