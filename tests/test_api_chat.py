import time

import pytest

from helpdesk import redis_client
from helpdesk.storage import repositories
from helpdesk.storage.db import get_session


async def _send(http, ticket_id, sender, text):
    response = await http.post(
        f"/api/tickets/{ticket_id}/messages",
        json={"senderId": sender["id"], "senderName": sender["fullName"], "text": text},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_two_sends_come_back_in_call_order(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])

    first = await _send(http, ticket["id"], user, "Hello?")
    second = await _send(http, ticket["id"], user, "Anyone there?")
    assert first["ticketId"] == ticket["id"]
    assert first["senderName"] == user["fullName"]

    messages = (await http.get(f"/api/tickets/{ticket['id']}/messages")).json()
    assert [m["id"] for m in messages] == [first["id"], second["id"]]
    assert [m["text"] for m in messages] == ["Hello?", "Anyone there?"]
    assert messages[0]["timestamp"] < messages[1]["timestamp"]


async def test_messages_only_grow_and_stay_ordered(http, make_user, make_ticket):
    user = await make_user("john.doe")
    admin = await make_user("admin", role="ADMIN")
    ticket = await make_ticket(user["id"])

    seen: list[dict] = []
    for i, sender in enumerate([user, admin, user, admin]):
        await _send(http, ticket["id"], sender, f"message {i}")
        snapshot = (await http.get(f"/api/tickets/{ticket['id']}/messages")).json()
        assert snapshot[: len(seen)] == seen
        assert len(snapshot) == len(seen) + 1
        timestamps = [m["timestamp"] for m in snapshot]
        assert timestamps == sorted(timestamps)
        seen = snapshot


async def test_messages_are_per_ticket(http, make_user, make_ticket):
    user = await make_user("john.doe")
    crm = await make_ticket(user["id"])
    printer = await make_ticket(user["id"], title="Printer Jam")
    await _send(http, crm["id"], user, "about CRM")

    assert (await http.get(f"/api/tickets/{printer['id']}/messages")).json() == []


async def test_unknown_ticket(http, make_user):
    user = await make_user("john.doe")
    assert (await http.get("/api/tickets/missing/messages")).json() == []
    response = await http.post(
        "/api/tickets/missing/messages",
        json={"senderId": user["id"], "senderName": user["fullName"], "text": "hi"},
    )
    assert response.status_code == 404


async def test_blank_message_is_rejected(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])
    response = await http.post(
        f"/api/tickets/{ticket['id']}/messages",
        json={"senderId": user["id"], "senderName": user["fullName"], "text": "   "},
    )
    assert response.status_code == 422


async def test_same_millisecond_sends_keep_order(db, monkeypatch):
    monkeypatch.setattr(repositories.time, "time", lambda: 1_700_000_000.0)
    async with get_session() as session:
        first = await repositories.message_add(session, "t-1", "u-1", "John", "one")
        second = await repositories.message_add(session, "t-1", "u-1", "John", "two")
        other = await repositories.message_add(session, "t-2", "u-1", "John", "elsewhere")
    assert first.timestamp == 1_700_000_000_000
    assert second.timestamp == first.timestamp + 1
    assert other.timestamp == 1_700_000_000_000

    async with get_session() as session:
        messages = await repositories.messages_for_ticket(session, "t-1")
    assert [m.text for m in messages] == ["one", "two"]


async def test_typing_without_redis_is_accepted_but_not_stored(http):
    response = await http.put("/api/tickets/t-1/typing", json={"userId": "111111", "userName": "John"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "stored": False}
    assert (await http.get("/api/tickets/t-1/typing")).json() == []


class FakeRedis:
    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.ttls: dict[str, int] = {}

    async def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value

    async def expire(self, key, seconds):
        self.ttls[key] = seconds

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis", fake)
    return fake


async def test_typing_presence_with_redis(http, fake_redis):
    await http.put("/api/tickets/t-1/typing", json={"userId": "111111", "userName": "John"})
    await http.put("/api/tickets/t-1/typing", json={"userId": "222222", "userName": "Admin"})
    assert fake_redis.ttls["typing:t-1"] == 5

    everyone = (await http.get("/api/tickets/t-1/typing")).json()
    assert everyone == [
        {"userId": "111111", "userName": "John"},
        {"userId": "222222", "userName": "Admin"},
    ]
    others = (await http.get("/api/tickets/t-1/typing", params={"exclude": "111111"})).json()
    assert others == [{"userId": "222222", "userName": "Admin"}]


async def test_expired_typing_entries_are_ignored(http, fake_redis, monkeypatch):
    await http.put("/api/tickets/t-1/typing", json={"userId": "111111", "userName": "John"})
    later = time.time() + 60
    monkeypatch.setattr(redis_client.time, "time", lambda: later)
    assert (await http.get("/api/tickets/t-1/typing")).json() == []
