"""
Tests for the login and token refresh endpoints.
"""

import uuid

from lowcode_server.auth.auth_handler import decode_jwt
from lowcode_server.persistence.models import Account, User, Workspace

TEST_PASSWORD = "testpassword"  # nosec B105 - matches the workspace_user fixture


class TestLogin:
    def test_login_success(self, client, workspace_user, session):
        workspace, account, user = workspace_user

        response = client.post(
            "/api/login",
            json={"email": "Test_User@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        payload = decode_jwt(response.json()["Authorization"])
        assert payload["user_id"] == str(user.id)
        assert payload["workspace_id"] == str(workspace.id)
        assert payload["account_id"] == str(account.id)
        assert "refresh_token" in response.cookies

        session.refresh(account)
        assert account.current_user_id == user.id

    def test_wrong_password(self, client, workspace_user):
        response = client.post(
            "/api/login",
            json={"email": "test_user@example.com", "password": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_account(self, client, workspace_user):
        response = client.post(
            "/api/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    def test_account_without_workspace(self, client, workspace_user, session):
        _, account, user = workspace_user
        session.delete(user)
        session.commit()

        response = client.post(
            "/api/login",
            json={"email": account.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403

    def test_current_workspace_is_preferred(self, client, workspace_user, session):
        _, account, _ = workspace_user
        second_workspace = Workspace(id=uuid.uuid4(), name="Second Workspace")
        second_user = User(
            id=uuid.uuid4(), account_id=account.id, workspace_id=second_workspace.id
        )
        session.add_all([second_workspace, second_user])
        session.commit()
        session.query(Account).filter(Account.id == account.id).update(
            {"current_user_id": second_user.id}
        )
        session.commit()

        response = client.post(
            "/api/login",
            json={"email": account.email, "password": TEST_PASSWORD},
        )

        payload = decode_jwt(response.json()["Authorization"])
        assert payload["workspace_id"] == str(second_workspace.id)

    def test_missing_fields(self, client):
        response = client.post("/api/login", json={"email": "a@example.com"})

        assert response.status_code == 422


class TestRefresh:
    def test_refresh_with_cookie(self, client, workspace_user):
        _, _, user = workspace_user
        login = client.post(
            "/api/login",
            json={"email": "test_user@example.com", "password": TEST_PASSWORD},
        )
        assert login.status_code == 200

        response = client.post("/api/refresh")

        assert response.status_code == 200
        payload = decode_jwt(response.json()["Authorization"])
        assert payload["user_id"] == str(user.id)

    def test_refresh_without_cookie(self, client):
        response = client.post("/api/refresh")

        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid or missing refresh token"

    def test_refresh_with_invalid_cookie(self, client):
        client.cookies.set("refresh_token", "not-a-token")

        response = client.post("/api/refresh")

        assert response.status_code == 403


class TestAppRoutes:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "Low-code platform server"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_protected_route_requires_token(self, client):
        response = client.post(f"/api/workspaces/{uuid.uuid4()}/catalog", json={})

        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.post(
            f"/api/workspaces/{uuid.uuid4()}/catalog",
            json={},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401
