import uuid

from campus_queue.core import security
from campus_queue.models import Account, AuthAction, AuthLog

from helpers import auth_header


def _signup(client, email: str, password: str = "secret123", name: str = "Queue Admin"):
    return client.post(
        "/api/v1/auth/admin/signup",
        json={"email": email, "password": password, "name": name},
    )


def _unique_email(prefix: str = "admin") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@university.edu"


def test_admin_signup_then_login(client):
    email = _unique_email()
    signup = _signup(client, email)
    assert signup.status_code == 201
    body = signup.json()
    assert body["admin"]["email"] == email
    assert body["admin"]["role"] == "admin"
    assert body["tokens"]["access_token"]
    assert body["tokens"]["refresh_token"]

    login = client.post("/api/v1/auth/admin/login", json={"email": email.upper(), "password": "secret123"})
    assert login.status_code == 200
    assert login.json()["admin"]["id"] == body["admin"]["id"]


def test_signup_with_existing_email_conflicts(client):
    email = _unique_email()
    assert _signup(client, email).status_code == 201

    duplicate = _signup(client, email)

    assert duplicate.status_code == 409


def test_signup_rejects_short_password(client):
    response = _signup(client, _unique_email(), password="123")

    assert response.status_code == 422


def test_login_with_wrong_password_is_rejected(client, session_factory):
    email = _unique_email()
    _signup(client, email)

    response = client.post("/api/v1/auth/admin/login", json={"email": email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"
    with session_factory() as session:
        failures = session.query(AuthLog).filter(AuthLog.email == email, AuthLog.action == AuthAction.FAILED_LOGIN)
        assert failures.count() == 1


def test_login_without_admin_profile_is_forbidden(client, session_factory):
    email = _unique_email("account")
    with session_factory() as session:
        session.add(Account(email=email, password_hash=security.hash_password("secret123")))
        session.commit()

    response = client.post("/api/v1/auth/admin/login", json={"email": email, "password": "secret123"})

    assert response.status_code == 403
    assert response.json()["detail"] == "You don't have admin privileges"


def test_me_reports_identity_kind(client, admin_token, make_staff):
    anonymous = client.get("/api/v1/auth/me")
    assert anonymous.status_code == 200
    assert anonymous.json()["identity"] == {"kind": "anonymous"}

    admin = client.get("/api/v1/auth/me", headers=auth_header(admin_token))
    assert admin.json()["identity"]["kind"] == "admin"

    staff = make_staff(name="Dr. Grace Hopper")
    access = client.post("/api/v1/auth/staff/access", json={"unique_id": staff.unique_id.lower()})
    assert access.status_code == 200
    staff_token = access.json()["tokens"]["access_token"]

    me = client.get("/api/v1/auth/me", headers=auth_header(staff_token))
    identity = me.json()["identity"]
    assert identity["kind"] == "staff"
    assert identity["staff_id"] == str(staff.id)
    assert identity["name"] == "Dr. Grace Hopper"


def test_staff_access_with_unknown_code_fails(client):
    response = client.post("/api/v1/auth/staff/access", json={"unique_id": "NOPE0000"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid unique ID. Please check and try again."


def test_staff_access_response_hides_access_code(client, make_staff):
    staff = make_staff()

    response = client.post("/api/v1/auth/staff/access", json={"unique_id": staff.unique_id})

    assert response.status_code == 200
    assert "unique_id" not in response.json()["staff"]


def test_refresh_issues_new_tokens(client):
    signup = _signup(client, _unique_email())
    refresh_token = signup.json()["tokens"]["refresh_token"]

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})

    assert response.status_code == 200
    tokens = response.json()
    me = client.get("/api/v1/auth/me", headers=auth_header(tokens["access_token"]))
    assert me.json()["identity"]["kind"] == "admin"


def test_refresh_rejects_access_token_and_empty_value(client):
    signup = _signup(client, _unique_email())
    access_token = signup.json()["tokens"]["access_token"]

    assert client.post("/api/v1/auth/refresh", json={"refresh_token": access_token}).status_code == 401
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": ""}).status_code == 400


def test_invalid_bearer_token_is_unauthorized(client):
    response = client.get("/api/v1/auth/me", headers=auth_header("not-a-token"))

    assert response.status_code == 401
