from datetime import datetime


async def test_create_ticket(http, make_user):
    user = await make_user("john.doe")
    response = await http.post(
        "/api/tickets",
        json={
            "userId": user["id"],
            "title": "Cannot access CRM",
            "description": "When I try to login to the CRM portal, it gives a 502 Bad Gateway error.",
            "department": "Sales",
            "screenshotUrl": "data:image/png;base64,iVBORw0KGgo=",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["createdAt"] == data["updatedAt"]
    assert data["userId"] == user["id"]
    assert data["screenshotUrl"] == "data:image/png;base64,iVBORw0KGgo="
    assert data["creator"] == {"id": user["id"], "username": "john.doe", "fullName": user["fullName"]}


async def test_create_ticket_for_unknown_user_fails(http):
    response = await http.post(
        "/api/tickets",
        json={"userId": "999999", "title": "Ghost ticket", "description": "", "department": "Sales"},
    )
    assert response.status_code == 500
    assert (await http.get("/api/tickets")).json() == []


async def test_create_then_list_round_trip(http, make_user, make_ticket):
    user = await make_user("john.doe")
    created = await make_ticket(user["id"], title="Printer Jam on 2nd Floor", department="HR")

    tickets = (await http.get("/api/tickets")).json()
    assert tickets == [created]


async def test_list_is_newest_first(http, make_user, make_ticket):
    user = await make_user("john.doe")
    first = await make_ticket(user["id"], title="First")
    second = await make_ticket(user["id"], title="Second")
    third = await make_ticket(user["id"], title="Third")

    ids = [t["id"] for t in (await http.get("/api/tickets")).json()]
    assert ids == [third["id"], second["id"], first["id"]]


async def test_list_filters(http, make_user, make_ticket):
    john = await make_user("john.doe")
    jane = await make_user("jane.smith", department="HR")
    crm = await make_ticket(john["id"])
    printer = await make_ticket(jane["id"], title="Printer Jam", department="HR")
    await http.put(f"/api/tickets/{printer['id']}/status", json={"status": "IN_PROGRESS"})

    by_user = (await http.get("/api/tickets", params={"userId": john["id"]})).json()
    assert [t["id"] for t in by_user] == [crm["id"]]
    by_status = (await http.get("/api/tickets", params={"status": "IN_PROGRESS"})).json()
    assert [t["id"] for t in by_status] == [printer["id"]]


async def test_status_update_scenario(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"], title="Cannot access CRM", department="Sales")
    assert ticket["status"] == "PENDING"

    response = await http.put(f"/api/tickets/{ticket['id']}/status", json={"status": "IN_PROGRESS"})
    assert response.status_code == 200
    assert response.json() == {"success": True}

    listed = (await http.get("/api/tickets")).json()[0]
    assert listed["status"] == "IN_PROGRESS"
    assert datetime.fromisoformat(listed["updatedAt"]) > datetime.fromisoformat(ticket["updatedAt"])
    assert listed["createdAt"] == ticket["createdAt"]


async def test_updated_at_strictly_increases(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])
    previous = datetime.fromisoformat(ticket["updatedAt"])
    # Any status may follow any status, including the same one
    for status in ("RESOLVED", "PENDING", "PENDING", "IN_PROGRESS"):
        await http.put(f"/api/tickets/{ticket['id']}/status", json={"status": status})
        current = (await http.get(f"/api/tickets/{ticket['id']}")).json()
        assert current["status"] == status
        updated = datetime.fromisoformat(current["updatedAt"])
        assert updated > previous
        previous = updated


async def test_status_update_unknown_ticket(http):
    response = await http.put("/api/tickets/does-not-exist/status", json={"status": "RESOLVED"})
    assert response.status_code == 404


async def test_status_update_rejects_unknown_status(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])
    response = await http.put(f"/api/tickets/{ticket['id']}/status", json={"status": "ESCALATED"})
    assert response.status_code == 422


async def test_get_ticket(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])
    response = await http.get(f"/api/tickets/{ticket['id']}")
    assert response.status_code == 200
    assert response.json() == ticket
    assert (await http.get("/api/tickets/missing")).status_code == 404


async def test_status_change_does_not_post_chat_message(http, make_user, make_ticket):
    user = await make_user("john.doe")
    ticket = await make_ticket(user["id"])
    await http.put(f"/api/tickets/{ticket['id']}/status", json={"status": "RESOLVED"})
    assert (await http.get(f"/api/tickets/{ticket['id']}/messages")).json() == []
