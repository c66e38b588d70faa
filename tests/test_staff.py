import uuid

import pytest

from campus_queue.models import Queue, QueueEntry, Staff
from campus_queue.services import QueueService, StaffService
from campus_queue.services import exceptions as service_exceptions
from campus_queue.services.staff_service import ACCESS_CODE_ALPHABET

from helpers import auth_header, staff_identity_for


def _create_staff(client, token, **overrides):
    payload = {
        "name": "Dr. Ada Byron",
        "email": f"{uuid.uuid4().hex[:8]}@university.edu",
        "department": "Computer Science",
    }
    payload.update(overrides)
    return client.post("/api/v1/staff", json=payload, headers=auth_header(token))


def test_admin_creates_staff_with_open_queue(client, admin_token, session_factory):
    response = _create_staff(client, admin_token, name="Prof. Alan Turing")

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Prof. Alan Turing"
    assert len(body["unique_id"]) == 8
    assert set(body["unique_id"]) <= set(ACCESS_CODE_ALPHABET)

    with session_factory() as session:
        queue = session.query(Queue).filter(Queue.staff_id == uuid.UUID(body["id"])).one()
        assert queue.is_open
        assert queue.last_number == 0


def test_staff_management_requires_admin(client, make_staff):
    staff = make_staff()
    anonymous = client.get("/api/v1/staff")
    assert anonymous.status_code == 401

    access = client.post("/api/v1/auth/staff/access", json={"unique_id": staff.unique_id})
    staff_token = access.json()["tokens"]["access_token"]

    forbidden = _create_staff(client, staff_token)
    assert forbidden.status_code == 403


def test_list_and_search_staff(client, admin_token):
    marker = uuid.uuid4().hex[:6]
    _create_staff(client, admin_token, name=f"Dr. Search {marker}")
    _create_staff(client, admin_token, department=f"Mathematics {marker}")
    _create_staff(client, admin_token)

    response = client.get(f"/api/v1/staff?search={marker}", headers=auth_header(admin_token))

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 2
    assert len(body["items"]) == 2
    assert all("unique_id" in item for item in body["items"])


def test_search_treats_wildcards_literally(client, admin_token):
    marker = uuid.uuid4().hex[:6]
    _create_staff(client, admin_token, name=f"Dr. {marker}_lab")
    _create_staff(client, admin_token, name=f"Dr. {marker}xlab")

    underscore = client.get("/api/v1/staff", params={"search": f"{marker}_lab"}, headers=auth_header(admin_token))
    percent = client.get("/api/v1/staff", params={"search": f"{marker}%lab"}, headers=auth_header(admin_token))

    assert underscore.json()["pagination"]["total"] == 1
    assert underscore.json()["items"][0]["name"] == f"Dr. {marker}_lab"
    assert percent.json()["pagination"]["total"] == 0


def test_update_staff_fields(client, admin_token):
    created = _create_staff(client, admin_token).json()

    response = client.put(
        f"/api/v1/staff/{created['id']}",
        json={"department": "Physics"},
        headers=auth_header(admin_token),
    )

    assert response.status_code == 200
    assert response.json()["department"] == "Physics"
    assert response.json()["name"] == created["name"]

    empty = client.put(f"/api/v1/staff/{created['id']}", json={}, headers=auth_header(admin_token))
    assert empty.status_code == 422


def test_regenerated_code_replaces_old_one(client, admin_token):
    created = _create_staff(client, admin_token).json()
    old_code = created["unique_id"]

    response = client.post(f"/api/v1/staff/{created['id']}/regenerate-id", headers=auth_header(admin_token))

    assert response.status_code == 200
    new_code = response.json()["unique_id"]
    assert new_code != old_code

    old_access = client.post("/api/v1/auth/staff/access", json={"unique_id": old_code})
    assert old_access.status_code == 401
    new_access = client.post("/api/v1/auth/staff/access", json={"unique_id": new_code})
    assert new_access.status_code == 200


def test_generated_codes_are_unused(make_staff, session_factory):
    existing = make_staff()
    with session_factory() as session:
        service = StaffService(session)
        codes = {service.generate_unique_id(exclude=existing.unique_id) for _ in range(20)}
        assert existing.unique_id not in codes
        taken = session.query(Staff).filter(Staff.unique_id.in_(codes)).count()
        assert taken == 0


def test_delete_staff_removes_queue_and_entries(client, admin_token, session_factory):
    created = _create_staff(client, admin_token).json()
    staff_id = uuid.UUID(created["id"])
    with session_factory() as session:
        service = QueueService(session)
        entry = service.join_queue(staff_id=staff_id, student_name="Ada", reason="advising")
        entry_id, queue_id = entry.id, entry.queue_id

    response = client.delete(f"/api/v1/staff/{created['id']}", headers=auth_header(admin_token))

    assert response.status_code == 204
    with session_factory() as session:
        assert session.query(Staff).filter(Staff.id == staff_id).first() is None
        assert session.query(Queue).filter(Queue.id == queue_id).first() is None
        assert session.query(QueueEntry).filter(QueueEntry.id == entry_id).first() is None

    status_response = client.get(f"/api/v1/queues/entries/{entry_id}")
    assert status_response.status_code == 404
    missing = client.get(f"/api/v1/staff/{created['id']}", headers=auth_header(admin_token))
    assert missing.status_code == 404


def test_service_rejects_non_admin_actor(make_staff, session_factory):
    staff = make_staff()
    with session_factory() as session:
        with pytest.raises(service_exceptions.AuthorizationError):
            StaffService(session).regenerate_unique_id(staff_id=staff.id, actor=staff_identity_for(staff))


def test_public_directory_hides_access_codes(client, admin_token):
    created = _create_staff(client, admin_token, name=f"Dr. Directory {uuid.uuid4().hex[:6]}").json()

    response = client.get("/api/v1/public/staff")

    assert response.status_code == 200
    listed = {item["id"]: item for item in response.json()}
    assert created["id"] in listed
    item = listed[created["id"]]
    assert item["queue_status"] == "open"
    assert "unique_id" not in item
    assert "email" not in item


def test_public_directory_reflects_writes(client, admin_token):
    client.get("/api/v1/public/staff")
    created = _create_staff(client, admin_token).json()

    after_create = client.get("/api/v1/public/staff").json()
    assert created["id"] in {item["id"] for item in after_create}

    client.delete(f"/api/v1/staff/{created['id']}", headers=auth_header(admin_token))
    after_delete = client.get("/api/v1/public/staff").json()
    assert created["id"] not in {item["id"] for item in after_delete}


def test_public_overview_counts(client, admin_token):
    before = client.get("/api/v1/public/overview").json()
    created = _create_staff(client, admin_token).json()
    client.post(
        "/api/v1/queues/join",
        json={"staff_id": created["id"], "student_name": "Ada", "reason": "advising"},
    )

    after = client.get("/api/v1/public/overview").json()

    assert after["staff_count"] == before["staff_count"] + 1
    assert after["open_queues"] == before["open_queues"] + 1
    assert after["students_waiting"] == before["students_waiting"] + 1
