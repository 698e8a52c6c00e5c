from datetime import date, timedelta

from hostelhub.models import Agent, UserRole


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_business_routes_require_login(client):
    response = client.get("/api/v1/business/agents")
    assert response.status_code == 401
    assert response.json()["error"] == "Unauthenticated"


def test_student_account_is_not_a_business(client, login, make_business):
    login(make_business(role=UserRole.STUDENT))
    assert client.get("/api/v1/business/hostels").status_code == 401


def test_signup_login_and_me(client):
    response = client.post("/api/v1/auth/signup", json={
        "email": "Owner@Example.com", "password": "s3cret-pass", "business_name": "Campus Stays",
    })
    assert response.status_code == 201
    assert response.json()["role"] == "business"

    client.cookies.clear()
    assert client.get("/api/v1/auth/me").status_code == 401

    bad = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "wrong"})
    assert bad.status_code == 401
    ok = client.post("/api/v1/auth/login", json={"email": "owner@example.com", "password": "s3cret-pass"})
    assert ok.status_code == 200
    assert client.get("/api/v1/auth/me").json()["email"] == "owner@example.com"
    assert client.get("/api/v1/business/hostels").json() == []


def test_agent_list_with_money_and_pagination(client, login, make_business, make_agent, make_hostel,
                                              make_booking):
    business = make_business()
    hostel = make_hostel(business)
    top = make_agent(business, "Top")
    make_agent(business, "Idle")
    make_booking(business, top, hostel, commission="1000", paid=True)
    make_booking(business, top, hostel, commission="500")
    login(business)

    body = client.get("/api/v1/business/agents").json()
    assert body["sort"] == {"criteria": "commission", "direction": "desc"}
    assert body["total_items"] == 2
    assert body["total_pages"] == 1
    first = body["items"][0]
    assert first["agent_name"] == "Top"
    assert first["total_commission"] == 1500.0
    assert first["paid_commission"] == 1000.0
    assert first["pending_commission"] == 500.0
    assert first["bookings_count"] == 2
    assert body["items"][1]["last_booking_date"] == "N/A"


def test_agent_list_filters_and_session_memory(client, login, make_business, make_agent):
    business = make_business()
    make_agent(business, "Active", active=True)
    make_agent(business, "Inactive", active=False)
    make_agent(business, "Unverified", verified=False)
    login(business)

    everyone = client.get("/api/v1/business/agents", params={"sort": "name", "direction": "asc"}).json()
    assert [a["agent_name"] for a in everyone["items"]] == ["Active", "Inactive", "Unverified"]

    narrowed = client.get("/api/v1/business/agents", params={
        "include_inactive": "false", "include_unverified": "false",
    }).json()
    assert [a["agent_name"] for a in narrowed["items"]] == ["Active"]

    # Omitted parameters come from the remembered session state
    again = client.get("/api/v1/business/agents").json()
    assert again["include_inactive"] is False
    assert again["sort"] == {"criteria": "name", "direction": "asc"}
    assert [a["agent_name"] for a in again["items"]] == ["Active"]


def test_agent_list_page_is_clamped(client, login, make_business, make_agent):
    business = make_business()
    for i in range(23):
        make_agent(business, f"Agent {i:02d}")
    login(business)

    body = client.get("/api/v1/business/agents", params={"limit": 50, "page": 4, "per_page": 10}).json()
    assert body["page"] == 3
    assert body["total_pages"] == 3
    assert len(body["items"]) == 3
    assert body["page_numbers"] == [1, 2, 3]


def test_toggle_then_refetch(client, login, db, make_business, make_agent):
    business = make_business()
    agent = make_agent(business, "A", active=True)
    login(business)

    response = client.post(f"/api/v1/business/agents/{agent.id}/status", json={"makeActive": False})
    assert response.status_code == 200
    assert response.json()["agent"]["active"] is False
    db.expire_all()
    assert db.get(Agent, agent.id).active is False

    listed = client.get("/api/v1/business/agents", params={"include_inactive": "true"}).json()
    assert listed["items"][0]["active"] is False


def test_toggle_rejected_while_another_is_in_flight(client, login, make_business, make_agent):
    business = make_business()
    agent = make_agent(business, "A")
    login(business)
    client.app.state.sessions.get(business.id).processing_agent_id = 999

    response = client.post(f"/api/v1/business/agents/{agent.id}/status", json={"make_active": False})
    assert response.status_code == 409
    assert response.json()["error"] == "ToggleInProgress"


def test_toggle_unknown_agent(client, login, make_business):
    login(make_business())
    response = client.post("/api/v1/business/agents/404/status", json={"makeActive": True})
    assert response.status_code == 404


def test_rooms_endpoint(client, login, make_business, make_hostel, make_room, make_occupant):
    business = make_business()
    hostel = make_hostel(business)
    r1 = make_room(hostel, "101", capacity=1)
    make_room(hostel, "102", capacity=2)
    make_occupant(r1, "Ada", lease_end=date.today() + timedelta(days=5))
    login(business)

    body = client.get(f"/api/v1/business/hostels/{hostel.id}/rooms").json()
    assert body["summary"] == {
        "total_rooms": 2, "rooms_with_vacancy": 1, "full_rooms": 1, "rooms_with_expiring_leases": 1,
    }
    assert [(r["room_number"], r["occupied_count"], r["status"]) for r in body["rooms"]] == [
        ("101", 1, "full"), ("102", 0, "vacant"),
    ]

    vacant = client.get(f"/api/v1/business/hostels/{hostel.id}/rooms", params={"filter": "vacant"}).json()
    assert [r["room_number"] for r in vacant["rooms"]] == ["102"]
    assert client.get("/api/v1/business/session").json()["room_filter"] == "vacant"


def test_rooms_of_foreign_hostel(client, login, make_business, make_hostel):
    hostel = make_hostel(make_business("Other"))
    login(make_business())
    assert client.get(f"/api/v1/business/hostels/{hostel.id}/rooms").status_code == 404


def test_add_occupant_to_full_room(client, login, make_business, make_hostel, make_room, make_occupant):
    business = make_business()
    room = make_room(make_hostel(business), capacity=1)
    make_occupant(room)
    login(business)
    response = client.post(f"/api/v1/business/rooms/{room.id}/occupants", json={
        "name": "Late Comer", "lease_end": "2030-09-01",
    })
    assert response.status_code == 422


def test_hostel_crud(client, login, make_business):
    business = make_business()
    login(business)

    created = client.post("/api/v1/business/hostels", json={
        "name": "Unity Hall", "location": "Ring Road, Ibadan", "price_per_year": 120000,
    })
    assert created.status_code == 201
    hostel_id = created.json()["id"]

    assert client.get("/api/v1/business/hostels").json() == [{
        "id": hostel_id, "name": "Unity Hall", "location": "Ring Road, Ibadan", "image_url": None,
        "available_rooms": 0,
    }]

    updated = client.patch(f"/api/v1/business/hostels/{hostel_id}", json={"available_rooms": 7})
    assert updated.json()["available_rooms"] == 7
    assert updated.json()["price_label"] == "₦120,000/year"

    assert client.delete(f"/api/v1/business/hostels/{hostel_id}").status_code == 204
    assert client.get(f"/api/v1/business/hostels/{hostel_id}").status_code == 404

    activities = client.get("/api/v1/business/activities").json()
    assert [a["type"] for a in activities] == ["delete_hostel", "add_hostel"]


def test_session_sort_and_expand(client, login, make_business):
    login(make_business())
    state = client.post("/api/v1/business/session/sort", json={"criteria": "commission"}).json()
    assert state["sort"] == {"criteria": "commission", "direction": "asc"}
    state = client.post("/api/v1/business/session/sort", json={"criteria": "bookings"}).json()
    assert state["sort"] == {"criteria": "bookings", "direction": "desc"}

    state = client.post("/api/v1/business/session/expand", json={"kind": "agent", "id": 3}).json()
    assert state["expanded_agents"] == [3]
    state = client.post("/api/v1/business/session/expand", json={"kind": "agent", "id": 3}).json()
    assert state["expanded_agents"] == []


def test_commission_statements(client, login, make_business, make_agent, make_hostel, make_booking):
    business = make_business()
    agent = make_agent(business, "Tunde")
    make_booking(business, agent, make_hostel(business), commission="1000", paid=True)
    login(business)

    csv_response = client.get(f"/api/v1/business/agents/{agent.id}/statement.csv")
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "Total commission,1000.00" in csv_response.text

    pdf_response = client.get(f"/api/v1/business/agents/{agent.id}/statement.pdf")
    assert pdf_response.status_code == 200
    assert pdf_response.content.startswith(b"%PDF")


def test_mark_commission_paid_endpoint(client, login, make_business, make_agent, make_booking):
    business = make_business()
    agent = make_agent(business, "A")
    booking = make_booking(business, agent, commission="250")
    login(business)

    assert client.post(f"/api/v1/business/bookings/{booking.id}/commission/paid").status_code == 204
    detail = client.get(f"/api/v1/business/agents/{agent.id}").json()
    assert detail["agent"]["paid_commission"] == 250.0
    assert detail["payment_history"][0]["amount"] == 250.0


def test_dashboard_stats_endpoint(client, login, make_business, make_booking):
    business = make_business()
    make_booking(business, amount="1500", status="confirmed")
    login(business)
    stats = client.get("/api/v1/business/dashboard/stats").json()
    assert stats["total_revenue"] == "₦1,500"
    assert stats["occupancy_rate"] == 0


def test_agent_list_default_covers_every_agent(client, login, make_business, make_agent, make_hostel,
                                                make_booking):
    business = make_business()
    hostel = make_hostel(business)
    agents = [make_agent(business, f"Agent {i:02d}") for i in range(12)]
    make_booking(business, agents[11], hostel, commission="9000")
    login(business)

    body = client.get("/api/v1/business/agents").json()
    assert body["total_items"] == 12
    assert body["total_pages"] == 2
    assert body["items"][0]["agent_name"] == "Agent 11"
    assert body["items"][0]["total_commission"] == 9000.0


def test_agent_flags_are_booleans_on_the_wire(client, login, make_business, make_agent):
    business = make_business()
    make_agent(business, "Off", active=False, verified=True)
    make_agent(business, "Unknown", active=None, verified=None)
    login(business)

    body = client.get("/api/v1/business/agents", params={"sort": "name", "direction": "asc"}).json()
    flags = {a["agent_name"]: (a["active"], a["verified"]) for a in body["items"]}
    assert flags["Off"][0] is False
    assert flags["Off"][1] is True
    assert flags["Unknown"] == (None, None)

    listed = client.get("/api/v1/business/agents/all").json()
    assert {a["active"] for a in listed} == {False, None}


def test_recent_bookings_use_remembered_filter(client, login, make_business, make_booking):
    business = make_business()
    for i in range(3):
        make_booking(business, student_name=f"P{i}", status="pending")
        make_booking(business, student_name=f"C{i}", status="confirmed")
    login(business)

    assert len(client.get("/api/v1/business/bookings/recent", params={"limit": 10}).json()) == 6

    state = client.post("/api/v1/business/session/filters", json={"booking_filter": "pending"}).json()
    assert state["booking_filter"] == "pending"
    narrowed = client.get("/api/v1/business/bookings/recent", params={"limit": 10}).json()
    assert len(narrowed) == 3
    assert {b["status"] for b in narrowed} == {"pending"}

    # An explicit status replaces the remembered one
    confirmed = client.get("/api/v1/business/bookings/recent", params={"limit": 2, "status": "confirmed"}).json()
    assert [b["status"] for b in confirmed] == ["confirmed", "confirmed"]
    assert client.get("/api/v1/business/session").json()["booking_filter"] == "confirmed"

    bad = client.post("/api/v1/business/session/filters", json={"booking_filter": "teleported"})
    assert bad.status_code == 422


def test_hostel_update_rejects_null_name(client, login, make_business, make_hostel):
    business = make_business()
    hostel = make_hostel(business)
    login(business)

    response = client.patch(f"/api/v1/business/hostels/{hostel.id}", json={"name": None})
    assert response.status_code == 422
    assert client.get(f"/api/v1/business/hostels/{hostel.id}").json()["name"] == hostel.name


def test_logout_keeps_session_while_toggle_in_flight(client, login, make_business):
    business = make_business()
    login(business)
    session = client.app.state.sessions.get(business.id)
    session.processing_agent_id = 5

    assert client.post("/api/v1/auth/logout").json() == {"ok": True}
    assert client.app.state.sessions.get(business.id) is session

    session.processing_agent_id = None
    login(business)
    client.post("/api/v1/auth/logout")
    assert client.app.state.sessions.get(business.id) is not session
