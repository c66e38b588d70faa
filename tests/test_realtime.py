import uuid

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from campus_queue.core.dependencies import get_db
from campus_queue.main import app

from helpers import auth_header

FEED_URL = "/api/v1/realtime/ws"


@pytest.fixture()
def live_client(session_factory):
    """Client running the app lifespan, so the change feed is bound to its loop."""

    def _override_get_db():
        with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def _join(client, staff, name):
    response = client.post(
        "/api/v1/queues/join",
        json={"staff_id": str(staff.id), "student_name": name, "reason": "advising"},
    )
    assert response.status_code == 201
    return response.json()["entry"]


def test_subscriber_receives_insert_after_join(live_client, make_staff):
    staff = make_staff()

    with live_client.websocket_connect(f"{FEED_URL}?table=queue_entries") as websocket:
        assert websocket.receive_json() == {"type": "subscribed", "table": "queue_entries", "row_id": None}

        entry = _join(live_client, staff, "Ada")
        message = websocket.receive_json()

    assert message["table"] == "queue_entries"
    assert message["action"] == "INSERT"
    assert message["row_id"] == entry["id"]
    assert message["record"]["queue_number"] == 1
    assert message["record"]["student_name"] == "Ada"
    assert "unique_id" not in message["record"]


def test_row_subscription_only_sees_its_row(live_client, make_staff):
    staff = make_staff()
    access = live_client.post("/api/v1/auth/staff/access", json={"unique_id": staff.unique_id})
    token = access.json()["tokens"]["access_token"]
    ada = _join(live_client, staff, "Ada")
    grace = _join(live_client, staff, "Grace")

    with live_client.websocket_connect(f"{FEED_URL}?table=queue_entries&row_id={grace['id']}") as websocket:
        assert websocket.receive_json()["row_id"] == grace["id"]

        live_client.post(f"/api/v1/queues/entries/{ada['id']}/complete", headers=auth_header(token))
        live_client.post(f"/api/v1/queues/entries/{grace['id']}/skip", headers=auth_header(token))
        message = websocket.receive_json()

    assert message["row_id"] == grace["id"]
    assert message["action"] == "UPDATE"
    assert message["record"]["status"] == "skipped"


def test_unknown_table_is_refused(live_client):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with live_client.websocket_connect(f"{FEED_URL}?table=users") as websocket:
            websocket.receive_json()

    assert excinfo.value.code == 1008


@pytest.mark.parametrize("query", ["", "?table=queue_entries&row_id=not-a-uuid"])
def test_missing_table_or_bad_row_id_is_refused(live_client, query):
    with pytest.raises(WebSocketDisconnect):
        with live_client.websocket_connect(f"{FEED_URL}{query}") as websocket:
            websocket.receive_json()


def test_row_id_is_normalised(live_client):
    row_id = uuid.uuid4()

    with live_client.websocket_connect(f"{FEED_URL}?table=queues&row_id={str(row_id).upper()}") as websocket:
        subscribed = websocket.receive_json()

    assert subscribed == {"type": "subscribed", "table": "queues", "row_id": str(row_id)}
