from __future__ import annotations

import dataclasses
import uuid

import jwt
from argon2 import PasswordHasher
from fastapi.testclient import TestClient
from sqlalchemy import select, update

from eventhub.auth.jwt import create_access_token
from eventhub.auth.password import needs_rehash, verify_password
from eventhub.main import create_app
from eventhub.models import User
from eventhub.models.user import UserRole
from tests.conftest import auth_headers, login, make_user, signup


def test_signup_then_duplicate_conflicts(client: TestClient):
    resp = signup(client, "a@x.com", password="pw")
    assert resp.status_code == 201
    assert resp.json()["role"] == "ATTENDEE"

    again = signup(client, "a@x.com", password="pw")
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "EMAIL_ALREADY_REGISTERED"


def test_signup_email_is_case_insensitive(client: TestClient):
    assert signup(client, "Case@Example.com").status_code == 201
    assert signup(client, "case@example.com").status_code == 409


def test_signup_missing_fields_is_bad_request(client: TestClient):
    resp = client.post("/v1/auth/signup", json={"email": "nopass@example.com"})
    assert resp.status_code == 400
    body = resp.json()["detail"]
    assert body["code"] == "INVALID_INPUT"
    assert "password" in body["fields"]


def test_signup_cannot_self_assign_admin(client: TestClient, db_session):
    resp = signup(client, "sneaky@example.com", role="ADMIN")
    assert resp.status_code == 201
    assert resp.json()["role"] == "ATTENDEE"

    resp = signup(client, "host@example.com", role="organizer")
    assert resp.json()["role"] == "ORGANIZER"

    user = db_session.scalar(select(User).where(User.email == "sneaky@example.com"))
    assert user.role == UserRole.ATTENDEE
    assert user.password_hash != "StrongPass123"


def test_login_wrong_password_then_correct(client: TestClient):
    signup(client, "a@x.com", password="pw")

    bad = login(client, "a@x.com", password="wrong")
    assert bad.status_code == 401

    unknown = login(client, "nobody@x.com", password="pw")
    assert unknown.status_code == 401

    good = login(client, "a@x.com", password="pw")
    assert good.status_code == 200
    token = good.json()["token"]

    me = client.get("/v1/auth/me", headers=auth_headers(token))
    assert me.status_code == 200
    assert me.json()["role"] == "ATTENDEE"
    assert me.json()["user_id"] == good.json()["user_id"]

    events = client.get("/v1/events", headers=auth_headers(token))
    assert events.status_code == 200


def test_missing_or_garbage_token_is_unauthenticated(client: TestClient):
    assert client.get("/v1/events").status_code == 401

    resp = client.get("/v1/events", headers=auth_headers("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"

    resp = client.get("/v1/events", headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401


def test_expired_token_is_unauthenticated(client: TestClient, settings):
    token = create_access_token(uuid.uuid4(), UserRole.ADMIN, ttl_seconds=-60, settings=settings)
    resp = client.get("/v1/events", headers=auth_headers(token))
    assert resp.status_code == 401


def test_forged_role_is_rejected(client: TestClient, db_session, settings):
    token = make_user(client, db_session, "forger@example.com")
    claims = jwt.decode(token, options={"verify_signature": False})
    claims["role"] = "ADMIN"
    forged = jwt.encode(claims, "some-other-secret", algorithm="HS256")

    resp = client.get("/v1/admin/users", headers=auth_headers(forged))
    assert resp.status_code == 401


def test_rbac_attendee_blocked_from_organizer_route(client: TestClient, db_session):
    token = make_user(client, db_session, "attendee@example.com")

    ev = client.post(
        "/v1/events",
        json={"title": "Attendee Event", "date": "2030-01-01T18:00:00Z"},
        headers=auth_headers(token),
    )
    assert ev.status_code == 403


def test_rbac_organizer_blocked_from_admin_route(client: TestClient, db_session):
    token = make_user(client, db_session, "org@example.com", UserRole.ORGANIZER)

    admin_list = client.get("/v1/admin/users", headers=auth_headers(token))
    assert admin_list.status_code == 403


def test_rbac_admin_allowed_everywhere(client: TestClient, db_session):
    token = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)

    admin_list = client.get("/v1/admin/users", headers=auth_headers(token))
    assert admin_list.status_code == 200
    assert [u["email"] for u in admin_list.json()] == ["admin@example.com"]

    ev = client.post(
        "/v1/events",
        json={"title": "Admin Event", "date": "2030-01-01T18:00:00Z"},
        headers=auth_headers(token),
    )
    assert ev.status_code == 201


def test_role_change_applies_on_next_login(client: TestClient, db_session):
    admin_token = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)
    old_token = make_user(client, db_session, "rising@example.com")
    user_id = login(client, "rising@example.com").json()["user_id"]

    resp = client.patch(
        f"/v1/admin/users/{user_id}",
        json={"role": "ORGANIZER"},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "ORGANIZER"

    payload = {"title": "Launch", "date": "2030-01-01T18:00:00Z"}
    # Role lives in the token: the old one still says ATTENDEE.
    stale = client.post("/v1/events", json=payload, headers=auth_headers(old_token))
    assert stale.status_code == 403

    new_token = login(client, "rising@example.com").json()["token"]
    fresh = client.post("/v1/events", json=payload, headers=auth_headers(new_token))
    assert fresh.status_code == 201


def test_admin_cannot_change_own_role(client: TestClient, db_session):
    token = make_user(client, db_session, "admin@example.com", UserRole.ADMIN)
    admin_id = login(client, "admin@example.com").json()["user_id"]

    resp = client.patch(
        f"/v1/admin/users/{admin_id}",
        json={"role": "ATTENDEE"},
        headers=auth_headers(token),
    )
    assert resp.status_code == 400


def test_configured_admin_email_bootstraps_first_admin(settings):
    app = create_app(dataclasses.replace(settings, admin_emails=["root@example.com"]))
    client = TestClient(app)
    try:
        root = signup(client, "Root@Example.com")
        assert root.status_code == 201
        assert root.json()["role"] == "ADMIN"

        # Asking for ADMIN in the body is still ignored for everyone else.
        sneaky = signup(client, "sneaky@example.com", role="ADMIN")
        assert sneaky.json()["role"] == "ATTENDEE"
        organizer = signup(client, "host@example.com", role="ORGANIZER")
        assert organizer.json()["role"] == "ORGANIZER"

        admin_token = login(client, "root@example.com").json()["token"]
        me = client.get("/v1/auth/me", headers=auth_headers(admin_token))
        assert me.json()["role"] == "ADMIN"

        host_token = login(client, "host@example.com").json()["token"]
        event_id = client.post(
            "/v1/events",
            json={"title": "Kickoff", "date": "2030-01-01T18:00:00Z"},
            headers=auth_headers(host_token),
        ).json()["id"]
        approved = client.put(f"/v1/events/{event_id}/approve", headers=auth_headers(admin_token))
        assert approved.status_code == 200

        promoted = client.patch(
            f"/v1/admin/users/{sneaky.json()['user_id']}",
            json={"role": "ADMIN"},
            headers=auth_headers(admin_token),
        )
        assert promoted.status_code == 200
        second_admin = login(client, "sneaky@example.com").json()
        assert second_admin["role"] == "ADMIN"

        attendee = signup(client, "guest@example.com")
        guest_token = login(client, "guest@example.com").json()["token"]
        rsvp = client.post(f"/v1/events/{event_id}/rsvp", headers=auth_headers(guest_token))
        assert attendee.status_code == 201
        assert rsvp.status_code == 201
    finally:
        app.state.engine.dispose()


def test_admin_emails_unset_means_no_bootstrap(client: TestClient, settings):
    assert settings.admin_emails == []
    resp = signup(client, "root@example.com", role="ADMIN")
    assert resp.json()["role"] == "ATTENDEE"


def test_login_upgrades_weak_password_digest(client: TestClient, db_session):
    signup(client, "legacy@example.com", password="pw")
    weak = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1).hash("pw")
    db_session.execute(
        update(User).where(User.email == "legacy@example.com").values(password_hash=weak)
    )
    db_session.commit()
    assert needs_rehash(weak)

    assert login(client, "legacy@example.com", password="pw").status_code == 200

    db_session.expire_all()
    stored = db_session.scalar(select(User).where(User.email == "legacy@example.com"))
    assert stored.password_hash != weak
    assert not needs_rehash(stored.password_hash)
    assert verify_password("pw", stored.password_hash)


def test_corrupt_password_digest_reads_as_wrong_password(client: TestClient, db_session):
    signup(client, "broken@example.com", password="pw")
    db_session.execute(
        update(User).where(User.email == "broken@example.com").values(password_hash="not-argon2")
    )
    db_session.commit()

    assert login(client, "broken@example.com", password="pw").status_code == 401
