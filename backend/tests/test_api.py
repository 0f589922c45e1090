from datetime import datetime, timezone

from coach_calendar.models import BlockedSlot, Booking

SLOT = "2025-06-02T11:30:00+02:00"
SLOT_UTC = "2025-06-02T09:30:00Z"


def book(client, slot=SLOT, name="Jane Doe", email="jane@example.com"):
    return client.post("/api/bookings", json={"slot_time": slot, "name": name, "email": email})


def find(slots, slot_time):
    return next(s for s in slots if s["slot_time"] == slot_time)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": True}


def test_public_slots_window(client):
    resp = client.get("/api/slots")
    assert resp.status_code == 200

    slots = resp.json()
    # now is 10:00 local on June 1: 20 slots left that day, 23 on each of the next six
    assert len(slots) == 20 + 6 * 23
    assert slots[0] == {"slot_time": "2025-06-01T10:30:00+02:00", "available": True}
    assert slots[-1]["slot_time"] == "2025-06-07T20:00:00+02:00"
    assert all(s["available"] for s in slots)


def test_reads_are_idempotent(client):
    book(client)
    client.post("/api/admin/block", json={"slot_time": "2025-06-03T10:00:00+02:00"})

    assert client.get("/api/slots").json() == client.get("/api/slots").json()
    assert client.get("/api/admin/slots").json() == client.get("/api/admin/slots").json()


def test_booking_then_duplicate(client, meetings, mailer):
    resp = book(client)
    assert resp.status_code == 201
    assert resp.json() == {
        "message": "Booking created successfully",
        "slot_time": "2025-06-02T11:30:00+02:00",
        "meeting_link": "https://zoom.example/j/1",
    }
    assert len(mailer.sent) == 1

    again = book(client, name="Other", email="other@example.com")
    assert again.status_code == 409
    assert again.json()["reason"] == "already_booked"

    utc_form = book(client, slot=SLOT_UTC, name="Other", email="other@example.com")
    assert utc_form.status_code == 409
    assert len(meetings.created) == 1


def test_booked_slot_shows_in_both_views(client):
    book(client)

    public = find(client.get("/api/slots").json(), SLOT)
    assert public == {"slot_time": SLOT, "available": False}

    admin_slots = client.get("/api/admin/slots").json()
    assert find(admin_slots, SLOT) == {
        "slot_time": SLOT,
        "status": "booked",
        "name": "Jane Doe",
        "email": "jane@example.com",
    }
    assert find(admin_slots, "2025-06-02T12:00:00+02:00") == {
        "slot_time": "2025-06-02T12:00:00+02:00",
        "status": "available",
    }


def test_booking_succeeds_when_integrations_fail(client, meetings, mailer, session_factory):
    meetings.fail_create = True
    mailer.fail = True

    resp = book(client)

    assert resp.status_code == 201
    assert resp.json()["meeting_link"] is None
    with session_factory() as session:
        assert session.query(Booking).count() == 1


def test_invalid_booking_requests(client):
    assert book(client, slot="not-a-date").status_code == 400
    assert book(client, slot="2025-06-02T11:30:00").status_code == 400
    assert book(client, name="").status_code == 400
    assert client.post("/api/bookings", json={"slot_time": SLOT}).status_code == 400

    malformed = client.post(
        "/api/bookings", content="{not json", headers={"Content-Type": "application/json"}
    )
    assert malformed.status_code == 400
    assert malformed.json()["reason"] == "invalid_request"


def test_past_slot(client):
    resp = book(client, slot="2025-06-01T09:30:00+02:00")
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Cannot book past slots", "reason": "past_slot"}


def test_blocked_slot_cannot_be_booked(client):
    assert client.post("/api/admin/block", json={"slot_time": SLOT_UTC}).status_code == 201

    resp = book(client)
    assert resp.status_code == 409
    assert resp.json()["reason"] == "slot_blocked"

    admin_slot = find(client.get("/api/admin/slots").json(), SLOT)
    assert admin_slot == {"slot_time": SLOT, "status": "blocked"}


def test_block_conflicts_have_distinct_reasons(client):
    book(client)
    booked = client.post("/api/admin/block", json={"slot_time": SLOT})

    other = "2025-06-02T12:00:00+02:00"
    client.post("/api/admin/block", json={"slot_time": other})
    twice = client.post("/api/admin/block", json={"slot_time": other})

    assert booked.status_code == 409
    assert twice.status_code == 409
    assert booked.json()["reason"] == "slot_booked"
    assert twice.json()["reason"] == "already_blocked"


def test_unblock(client):
    missing = client.post("/api/admin/unblock", json={"slot_time": SLOT})
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Slot not found in blocked list"

    client.post("/api/admin/block", json={"slot_time": SLOT})
    resp = client.post("/api/admin/unblock", json={"slot_time": SLOT_UTC})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Slot unblocked successfully"}
    assert find(client.get("/api/slots").json(), SLOT)["available"] is True


def test_cancel_with_failing_meeting_delete(client, meetings, session_factory):
    book(client)
    meetings.fail_delete = True

    resp = client.post("/api/admin/cancel", json={"slot_time": SLOT_UTC})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Booking cancelled successfully"}
    assert meetings.deleted == ["m-1"]
    with session_factory() as session:
        assert session.query(Booking).count() == 0
    assert find(client.get("/api/slots").json(), SLOT)["available"] is True


def test_cancel_missing_booking(client):
    resp = client.post("/api/admin/cancel", json={"slot_time": SLOT})
    assert resp.status_code == 404
    assert resp.json()["reason"] == "not_found"


def test_admin_requests_need_valid_slot_time(client):
    for path in ("/api/admin/block", "/api/admin/unblock", "/api/admin/cancel"):
        assert client.post(path, json={}).status_code == 400
        assert client.post(path, json={"slot_time": "yesterday"}).status_code == 400


def test_clear_all_blocked(client, session_factory):
    empty = client.post("/api/admin/clear-all-blocked")
    assert empty.status_code == 200
    assert empty.json() == {"message": "All blocked slots cleared", "rows_affected": 0}

    client.post("/api/admin/block", json={"slot_time": SLOT})
    client.post("/api/admin/block", json={"slot_time": "2025-06-03T10:00:00+02:00"})

    resp = client.post("/api/admin/clear-all-blocked")
    assert resp.json()["rows_affected"] == 2
    with session_factory() as session:
        assert session.query(BlockedSlot).count() == 0


def test_debug_blocked(client):
    client.post("/api/admin/block", json={"slot_time": "2025-06-03T11:00:00+02:00"})

    [row] = client.get("/api/admin/debug-blocked").json()

    assert row["slot_time_utc"] == "2025-06-03T09:00:00Z"
    assert row["slot_time_local"] == "2025-06-03T11:00:00+02:00"
    assert row["slot_key"] == int(datetime(2025, 6, 3, 9, 0, tzinfo=timezone.utc).timestamp())
