"""
Department endpoints: the two-writer conflict flow over HTTP.
"""
from decimal import Decimal

from contoso.store.base.errors import StorageUnavailable
from contoso.web.dependencies import app_state


def create(client, name="English", budget="350000", start_date="2007-09-01", **extra):
    body = {"name": name, "budget": budget, "start_date": start_date}
    body.update(extra)
    resp = client.post("/departments", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_and_get(client):
    created = create(client)
    assert created["id"] == 1
    assert created["row_version"]

    resp = client.get(f"/departments/{created['id']}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "English"
    assert Decimal(str(data["budget"])) == Decimal("350000")
    assert data["start_date"] == "2007-09-01"
    assert data["row_version"] == created["row_version"]


def test_get_missing_is_404(client):
    resp = client.get("/departments/99")
    assert resp.status_code == 404
    assert resp.json()["error"] == "Department not found: 99"


def test_create_invalid_is_400(client):
    resp = client.post("/departments", json={"name": "", "budget": "-5", "start_date": "2007-09-01"})
    assert resp.status_code == 400
    assert set(resp.json()["details"]) == {"name", "budget"}


def test_administrator_name(client):
    instructor = client.post(
        "/instructors",
        json={"last_name": "Abercrombie", "first_mid_name": "Kim", "hire_date": "1995-03-11"},
    ).json()
    dept = create(client, instructor_id=instructor["id"])
    assert dept["administrator"] == "Abercrombie, Kim"


def test_list_is_ordered_by_name(client):
    for name in ["Mathematics", "Economics", "English"]:
        create(client, name=name)

    data = client.get("/departments").json()
    assert [d["name"] for d in data["items"]] == ["Economics", "English", "Mathematics"]
    assert data["page_index"] == 1
    assert data["total_count"] == 3
    assert not data["has_next"]


def test_edit_success_changes_token(client):
    dept = create(client)
    resp = client.put(f"/departments/{dept['id']}", json={"row_version": dept["row_version"], "name": "B"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "B"
    assert resp.json()["row_version"] != dept["row_version"]


def test_two_writers_conflict_then_retry(client):
    dept = create(client, name="A", budget="100")
    t1 = dept["row_version"]

    x = client.put(f"/departments/{dept['id']}", json={"row_version": t1, "name": "B"})
    assert x.status_code == 200
    t2 = x.json()["row_version"]

    y = client.put(
        f"/departments/{dept['id']}",
        json={"row_version": t1, "name": "A", "budget": "200", "start_date": "2007-09-01"},
    )
    assert y.status_code == 409
    body = y.json()
    assert body["field_errors"] == {
        "name": "Current value: B",
        "budget": "Current value: $100.00",
    }
    assert len(body["advisories"]) == 1
    assert body["current"]["name"] == "B"
    assert body["retry"]["row_version"] == t2

    # nothing of Y was stored
    stored = client.get(f"/departments/{dept['id']}").json()
    assert stored["name"] == "B"
    assert Decimal(str(stored["budget"])) == Decimal("100")

    retry = client.put(
        f"/departments/{dept['id']}",
        json={"row_version": body["retry"]["row_version"], "budget": "200"},
    )
    assert retry.status_code == 200
    assert retry.json()["name"] == "B"
    assert Decimal(str(retry.json()["budget"])) == Decimal("200")


def test_edit_after_delete_is_410(client):
    dept = create(client)
    t1 = dept["row_version"]
    assert client.delete(f"/departments/{dept['id']}", params={"row_version": t1}).status_code == 204

    resp = client.put(f"/departments/{dept['id']}", json={"row_version": t1, "budget": "1"})
    assert resp.status_code == 410
    assert resp.json()["error"] == "Unable to save changes. The department was deleted by another user."


def test_stale_delete_needs_confirmation(client):
    dept = create(client)
    t1 = dept["row_version"]
    t2 = client.put(f"/departments/{dept['id']}", json={"row_version": t1, "name": "B"}).json()["row_version"]

    first = client.delete(f"/departments/{dept['id']}", params={"row_version": t1})
    assert first.status_code == 409
    assert first.json()["current"]["row_version"] == t2

    assert client.delete(f"/departments/{dept['id']}", params={"row_version": t2}).status_code == 204
    gone = client.delete(f"/departments/{dept['id']}", params={"row_version": t2})
    assert gone.status_code == 410


def test_malformed_token_is_400(client):
    dept = create(client)
    resp = client.put(f"/departments/{dept['id']}", json={"row_version": "not base64!", "name": "B"})
    assert resp.status_code == 400


def test_missing_token_is_400(client):
    dept = create(client)
    resp = client.put(f"/departments/{dept['id']}", json={"name": "B"})
    assert resp.status_code == 400


def test_unknown_administrator_is_400(client):
    resp = client.post(
        "/departments",
        json={"name": "English", "budget": "1", "start_date": "2007-09-01", "instructor_id": 999},
    )
    assert resp.status_code == 400
    assert list(resp.json()["details"]) == ["instructor_id"]
    assert client.get("/departments").json()["total_count"] == 0

    dept = create(client)
    resp = client.put(f"/departments/{dept['id']}", json={"row_version": dept["row_version"], "instructor_id": 7})
    assert resp.status_code == 400
    assert client.get(f"/departments/{dept['id']}").json()["instructor_id"] is None


def test_storage_failure_is_generic_503(client, monkeypatch):
    dept = create(client)

    def unreachable(*args, **kwargs):
        raise StorageUnavailable("MySQL is unreachable")

    record_io = app_state["registrar"].departments.store.record_io
    monkeypatch.setattr(record_io, "get", unreachable)
    monkeypatch.setattr(record_io, "try_conditional_write", unreachable)

    resp = client.put(f"/departments/{dept['id']}", json={"row_version": dept["row_version"], "name": "B"})

    assert resp.status_code == 503
    assert resp.json() == {"error": "The service is temporarily unavailable. Try again later."}
