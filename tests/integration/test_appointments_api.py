from datetime import timedelta

import pytest

from app.services.clock import today_local

from factories import make_payload

BASE = "/api/appointments"


@pytest.fixture
def payload(future_date):
    return make_payload(appointmentDate=future_date)


def post(client, payload):
    return client.post(BASE, json=payload)


def test_create_and_get(client, payload):
    r = post(client, {**payload, "patientEmail": " ANA@Example.com ", "notes": "ignorado"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["patientEmail"] == "ana@example.com"
    assert data["status"] == "scheduled"
    assert data["notes"] is None
    assert {"id", "createdAt", "updatedAt"} <= set(data)

    r = client.get(f"{BASE}/{data['id']}")
    assert r.status_code == 200
    assert r.json()["data"] == data


def test_create_validation_error_lists_fields(client, payload):
    r = post(client, {**payload, "appointmentTime": "9:00", "patientName": "A"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert {e["field"] for e in body["errors"]} == {"appointmentTime", "patientName"}


def test_create_rejects_past_date(client, payload):
    yesterday = (today_local() - timedelta(days=1)).isoformat()
    r = post(client, {**payload, "appointmentDate": yesterday})
    assert r.status_code == 400
    assert [e["field"] for e in r.json()["errors"]] == ["appointmentDate"]


def test_conflict_returns_409(client, payload):
    assert post(client, payload).status_code == 201
    r = post(client, {**payload, "patientName": "Otro Paciente"})
    assert r.status_code == 409
    assert r.json()["success"] is False


def test_slot_is_free_again_after_cancel(client, payload):
    first = post(client, payload).json()["data"]
    r = client.patch(f"{BASE}/{first['id']}/status", json={"status": "cancelled"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "cancelled"
    assert post(client, {**payload, "patientName": "Otro Paciente"}).status_code == 201


def test_get_unknown_and_malformed_id(client):
    r = client.get(f"{BASE}/999")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Cita no encontrada"}
    r = client.get(f"{BASE}/not-an-id")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "id"


def test_out_of_range_ids_are_rejected(client):
    for bad in ("99999999999999999999", "0", "-1"):
        r = client.get(f"{BASE}/{bad}")
        assert r.status_code == 400, bad
        assert r.json()["errors"][0]["field"] == "id"
    r = client.delete(f"{BASE}/99999999999999999999")
    assert r.status_code == 400


def test_timestamps_are_utc(client, payload):
    created = post(client, payload).json()["data"]
    fetched = client.get(f"{BASE}/{created['id']}").json()["data"]
    for data in (created, fetched):
        assert data["createdAt"].endswith(("Z", "+00:00"))
        assert data["updatedAt"].endswith(("Z", "+00:00"))


def test_put_replaces_and_sets_notes(client, payload):
    appt = post(client, payload).json()["data"]
    r = client.put(f"{BASE}/{appt['id']}", json={**payload, "reason": "Control", "notes": "Ayuno", "patientPhone": None})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["reason"] == "Control"
    assert data["notes"] == "Ayuno"
    assert data["patientPhone"] is None
    assert data["createdAt"] == appt["createdAt"]


def test_put_conflict_and_missing(client, payload):
    post(client, payload)
    other = post(client, {**payload, "appointmentTime": "11:00"}).json()["data"]
    assert client.put(f"{BASE}/{other['id']}", json=payload).status_code == 409
    assert client.put(f"{BASE}/999", json=payload).status_code == 404


def test_patch_status_validation_and_idempotence(client, payload):
    appt = post(client, payload).json()["data"]
    assert client.patch(f"{BASE}/{appt['id']}/status", json={"status": "archived"}).status_code == 400
    assert client.patch(f"{BASE}/{appt['id']}/status", json={}).status_code == 400
    first = client.patch(f"{BASE}/{appt['id']}/status", json={"status": "no-show"}).json()["data"]
    second = client.patch(f"{BASE}/{appt['id']}/status", json={"status": "no-show"}).json()["data"]
    first.pop("updatedAt"), second.pop("updatedAt")
    assert first == second
    assert client.patch(f"{BASE}/999/status", json={"status": "completed"}).status_code == 404


def test_delete(client, payload):
    appt = post(client, payload).json()["data"]
    r = client.delete(f"{BASE}/{appt['id']}")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert client.get(f"{BASE}/{appt['id']}").status_code == 404
    assert client.delete(f"{BASE}/{appt['id']}").status_code == 404


def test_list_pagination_and_filters(client, future_date):
    for i in range(25):
        r = post(client, make_payload(
            appointmentDate=future_date,
            appointmentTime=f"{8 + i // 4:02d}:{(i % 4) * 15:02d}",
            doctorName="Dr. Smith" if i % 2 == 0 else "Dr. Jones",
        ))
        assert r.status_code == 201

    r = client.get(BASE, params={"page": 1, "limit": 10})
    body = r.json()
    assert len(body["data"]) == 10
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 25, "pages": 3}
    times = [a["appointmentTime"] for a in body["data"]]
    assert times == sorted(times)

    r = client.get(BASE, params={"page": 4, "limit": 10})
    assert r.status_code == 200
    assert r.json()["data"] == []

    r = client.get(BASE, params={"doctor": "jones", "limit": 100})
    assert r.json()["pagination"]["total"] == 12
    # "_" y "%" se buscan literalmente
    for literal in ("_", "%"):
        r = client.get(BASE, params={"doctor": literal})
        assert r.json()["pagination"]["total"] == 0


def test_list_bad_params(client):
    assert client.get(BASE, params={"page": 0}).status_code == 400
    assert client.get(BASE, params={"limit": 101}).status_code == 400
    r = client.get(BASE, params={"status": "archived", "startDate": "mañana"})
    assert r.status_code == 400
    assert {e["field"] for e in r.json()["errors"]} == {"status", "startDate"}


def test_list_date_range(client):
    base = today_local()
    for offset in (1, 5, 10):
        post(client, make_payload(appointmentDate=(base + timedelta(days=offset)).isoformat()))
    r = client.get(BASE, params={
        "startDate": (base + timedelta(days=5)).isoformat(),
        "endDate": (base + timedelta(days=10)).isoformat(),
    })
    assert [a["appointmentDate"] for a in r.json()["data"]] == [
        (base + timedelta(days=5)).isoformat(),
        (base + timedelta(days=10)).isoformat(),
    ]


def test_upcoming_and_stats(client, payload):
    a = post(client, payload).json()["data"]
    post(client, {**payload, "appointmentTime": "11:00"})
    client.patch(f"{BASE}/{a['id']}/status", json={"status": "completed"})

    r = client.get(f"{BASE}/upcoming")
    assert r.status_code == 200
    assert [x["appointmentTime"] for x in r.json()["data"]] == ["11:00"]

    r = client.get(f"{BASE}/stats/overview")
    assert r.status_code == 200
    stats = r.json()["data"]
    assert stats["total"] == 2
    assert stats["upcoming"] == 1
    assert sum(stats["byStatus"].values()) == stats["total"]
    assert stats["byDoctor"] == [{"name": "Dr. Smith", "count": 2}]
    assert stats["monthly"][0]["count"] == 2


def test_stats_on_empty_store(client):
    stats = client.get(f"{BASE}/stats/overview").json()["data"]
    assert stats["total"] == 0
    assert stats["byStatus"]["scheduled"] == 0
    assert stats["byDepartment"] == []
