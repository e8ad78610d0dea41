"""End-to-end tests of the HTTP API over the in-memory database."""

import pytest
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from fitclub.core.modules.password_reset.service import REQUEST_ACCEPTED_MESSAGE

API = "/api/v1"


def login(client, email, password, user_type="member"):
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password, "user_type": user_type})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


def register(client, email="anna@club.test", password="OldPass1!", name="Anna"):
    response = client.post(f"{API}/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def admin_headers(client, config):
    return login(client, config.admin_email, config.admin_password, user_type="staff")


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestAuth:
    def test_bad_credentials(self, client):
        register(client)

        response = client.post(f"{API}/auth/login", json={"email": "anna@club.test", "password": "wrong-pass"})

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_login_sets_http_only_cookie(self, client):
        register(client)

        response = client.post(f"{API}/auth/login", json={"email": "anna@club.test", "password": "OldPass1!"})

        cookie = response.headers["set-cookie"]
        assert "session_id=" in cookie
        assert "HttpOnly" in cookie
        assert "Max-Age=604800" in cookie

    def test_register_login_check_logout(self, client):
        user = register(client)
        headers = login(client, "anna@club.test", "OldPass1!")

        check = client.get(f"{API}/auth/check", headers=headers).json()
        assert check["authenticated"] is True
        assert check["user"]["id"] == user["id"]
        assert check["dashboard_url"] == "/member-dashboard"

        profile = client.get(f"{API}/profile", headers=headers).json()
        assert profile["email"] == "anna@club.test"
        assert profile["last_login_at"] is not None

        assert client.post(f"{API}/auth/logout", headers=headers).status_code == 204
        assert client.get(f"{API}/profile", headers=headers).status_code == 401
        assert client.get(f"{API}/auth/check", headers=headers).json() == {
            "authenticated": False,
            "user": None,
            "dashboard_url": None,
            "session_created": None,
            "last_accessed": None,
        }

    def test_malformed_email_is_rejected(self, client):
        response = client.post(f"{API}/auth/register", json={"name": "Anna", "email": "anna@b..com", "password": "OldPass1!"})

        assert response.status_code == 422

    def test_duplicate_registration(self, client):
        register(client)

        response = client.post(
            f"{API}/auth/register", json={"name": "Anna", "email": "ANNA@club.test", "password": "OldPass1!"}
        )

        assert response.status_code == 400

    def test_logout_all_ends_every_session(self, client):
        register(client)
        first = login(client, "anna@club.test", "OldPass1!")
        second = login(client, "anna@club.test", "OldPass1!")

        assert len(client.get(f"{API}/profile/sessions", headers=first).json()) == 2

        response = client.post(f"{API}/auth/logout-all", headers=first)

        assert response.json() == {"terminated": 2}
        assert client.get(f"{API}/profile", headers=second).status_code == 401

    def test_sessions_expose_only_prefix(self, client):
        register(client)
        headers = login(client, "anna@club.test", "OldPass1!")
        token = headers["Authorization"].removeprefix("Bearer ")

        sessions = client.get(f"{API}/profile/sessions", headers=headers).json()

        assert sessions[0]["id_prefix"] == token[:8]
        assert token not in str(sessions)

    def test_deactivated_user_cannot_login(self, client, admin_headers):
        user = register(client)
        member_headers = login(client, "anna@club.test", "OldPass1!")

        response = client.put(
            f"{API}/users/member/{user['id']}/active", json={"is_active": False}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get(f"{API}/profile", headers=member_headers).status_code == 401
        denied = client.post(f"{API}/auth/login", json={"email": "anna@club.test", "password": "OldPass1!"})
        assert denied.status_code == 403


class TestPasswordReset:
    def test_full_reset_flow(self, client):
        register(client)
        old_session = login(client, "anna@club.test", "OldPass1!")

        requested = client.post(
            f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"}
        ).json()
        assert requested["message"] == REQUEST_ACCEPTED_MESSAGE
        token = requested["token"]

        verified = client.get(f"{API}/auth/password-reset/verify", params={"token": token, "user_type": "member"})
        assert verified.status_code == 200
        assert verified.json()["email"] == "anna@club.test"

        confirmed = client.post(
            f"{API}/auth/password-reset/confirm",
            json={"token": token, "new_password": "NewPass1!", "user_type": "member"},
        )
        assert confirmed.status_code == 204

        assert client.get(f"{API}/profile", headers=old_session).status_code == 401
        login(client, "anna@club.test", "NewPass1!")

        reused = client.post(
            f"{API}/auth/password-reset/confirm",
            json={"token": token, "new_password": "Other1!!", "user_type": "member"},
        )
        assert reused.status_code == 400
        assert reused.json()["type"] == "invalid_token"

    def test_reset_ends_sessions_even_if_audit_write_fails(self, client, database, monkeypatch):
        register(client)
        old_session = login(client, "anna@club.test", "OldPass1!")
        token = client.post(
            f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"}
        ).json()["token"]
        log_collection = database.get_collection("password_reset_logs")
        insert_one = log_collection.insert_one

        async def insert_unless_completed(document):
            if document["action"] == "completed":
                raise AutoReconnect("primary stepped down")
            return await insert_one(document)

        monkeypatch.setattr(log_collection, "insert_one", insert_unless_completed)

        confirmed = client.post(
            f"{API}/auth/password-reset/confirm",
            json={"token": token, "new_password": "NewPass1!", "user_type": "member"},
        )

        assert confirmed.status_code == 204
        assert client.get(f"{API}/profile", headers=old_session).status_code == 401
        login(client, "anna@club.test", "NewPass1!")

    def test_unknown_email_gets_same_answer(self, client):
        response = client.post(
            f"{API}/auth/password-reset/request", json={"email": "ghost@club.test", "user_type": "member"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": REQUEST_ACCEPTED_MESSAGE, "token": None}

    def test_token_hidden_unless_exposed(self, client, config):
        register(client)
        config.expose_reset_token = False

        response = client.post(
            f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"}
        )

        assert response.json() == {"message": REQUEST_ACCEPTED_MESSAGE, "token": None}

    def test_verify_bad_token(self, client):
        response = client.get(f"{API}/auth/password-reset/verify", params={"token": "bogus", "user_type": "member"})

        assert response.status_code == 400
        assert response.json()["type"] == "invalid_token"

    def test_weak_new_password_keeps_token(self, client):
        register(client)
        token = client.post(
            f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"}
        ).json()["token"]

        weak = client.post(
            f"{API}/auth/password-reset/confirm", json={"token": token, "new_password": "abc", "user_type": "member"}
        )

        assert weak.status_code == 400
        assert weak.json()["type"] == "validation_error"
        verified = client.get(f"{API}/auth/password-reset/verify", params={"token": token, "user_type": "member"})
        assert verified.status_code == 200

    def test_storage_failure_is_503(self, client, database):
        register(client)
        database.get_collection("members").error = ServerSelectionTimeoutError("no servers")

        response = client.post(
            f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"}
        )

        assert response.status_code == 503
        assert response.json()["type"] == "system_error"


class TestAdmin:
    def test_member_is_denied(self, client):
        register(client)
        headers = login(client, "anna@club.test", "OldPass1!")

        assert client.get(f"{API}/admin/sessions/stats", headers=headers).status_code == 403
        assert client.post(f"{API}/admin/password-reset/cleanup", headers=headers).status_code == 403
        assert client.get(f"{API}/users", headers=headers).status_code == 403

    def test_anonymous_is_rejected(self, client):
        assert client.get(f"{API}/admin/sessions/stats").status_code == 401

    def test_session_stats_and_cleanup(self, client, admin_headers):
        register(client)
        login(client, "anna@club.test", "OldPass1!")

        stats = client.get(f"{API}/admin/sessions/stats", params={"recent": 5}, headers=admin_headers).json()

        assert stats["active"] == 2
        assert stats["by_role"] == {"super-admin": 1, "member": 1}
        assert len(stats["recent"]) == 2
        cleanup = client.post(f"{API}/admin/sessions/cleanup", headers=admin_headers)
        assert cleanup.json() == {"count": 0}

    def test_terminate_user_sessions(self, client, admin_headers):
        user = register(client)
        member_headers = login(client, "anna@club.test", "OldPass1!")

        listed = client.get(f"{API}/admin/users/{user['id']}/sessions", headers=admin_headers).json()
        terminated = client.delete(f"{API}/admin/users/{user['id']}/sessions", headers=admin_headers).json()

        assert len(listed) == 1
        assert terminated == {"count": 1}
        assert client.get(f"{API}/profile", headers=member_headers).status_code == 401

    def test_create_and_list_users(self, client, config, admin_headers):
        created = client.post(
            f"{API}/users",
            json={
                "user_type": "staff",
                "name": "Coach",
                "email": "coach@club.test",
                "password": "Coach123",
                "role": "trainer",
            },
            headers=admin_headers,
        )
        assert created.status_code == 201

        staff = client.get(f"{API}/users", params={"user_type": "staff"}, headers=admin_headers).json()

        assert [u["email"] for u in staff] == [config.admin_email, "coach@club.test"]
        trainer = login(client, "coach@club.test", "Coach123", user_type="staff")
        check = client.get(f"{API}/auth/check", headers=trainer).json()
        assert check["dashboard_url"] == "/trainer-dashboard"

    def test_role_must_match_partition(self, client, admin_headers):
        response = client.post(
            f"{API}/users",
            json={"user_type": "member", "name": "X", "email": "x@club.test", "password": "Secret1!", "role": "admin"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_admin_cannot_deactivate_self(self, client, admin_headers):
        staff = client.get(f"{API}/users", params={"user_type": "staff"}, headers=admin_headers).json()

        response = client.put(
            f"{API}/users/staff/{staff[0]['id']}/active", json={"is_active": False}, headers=admin_headers
        )

        assert response.status_code == 403

    def test_reset_logs_and_cleanup(self, client, admin_headers):
        register(client)
        client.post(f"{API}/auth/password-reset/request", json={"email": "anna@club.test", "user_type": "member"})
        client.post(f"{API}/auth/password-reset/request", json={"email": "ghost@club.test", "user_type": "staff"})

        logs = client.get(f"{API}/admin/password-reset/logs", headers=admin_headers).json()
        member_logs = client.get(
            f"{API}/admin/password-reset/logs", params={"user_type": "member"}, headers=admin_headers
        ).json()
        cleanup = client.post(f"{API}/admin/password-reset/cleanup", headers=admin_headers)

        assert logs["total"] == 2
        assert logs["has_more"] is False
        assert {entry["action"] for entry in logs["items"]} == {"requested", "failed"}
        assert member_logs["total"] == 1
        assert member_logs["items"][0]["user_agent"] == "testclient"
        assert cleanup.json() == {"count": 0}
