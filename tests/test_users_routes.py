"""Tests for the user endpoints."""

from bson import ObjectId

from conftest import ANOTHER_USER, TEST_USER, bearer


def _login(client, user: dict) -> dict:
    response = client.post("/api/users/login", json={"email": user["email"], "password": user["password"]})
    assert response.status_code == 200
    return response.json()


class TestListAndGet:
    def test_list_users(self, client, registered):
        client.post("/api/users/register", json=ANOTHER_USER)

        response = client.get("/api/users", headers=bearer(registered["accessToken"]))

        assert response.status_code == 200
        users = response.json()
        assert [u["username"] for u in users] == [TEST_USER["username"], ANOTHER_USER["username"]]
        for user in users:
            assert set(user) == {"id", "username", "email", "createdAt", "updatedAt"}

    def test_get_user(self, client, registered):
        user_id = registered["user"]["id"]

        response = client.get(f"/api/users/{user_id}", headers=bearer(registered["accessToken"]))

        assert response.status_code == 200
        assert response.json()["email"] == TEST_USER["email"]
        assert "password" not in response.json()

    def test_malformed_id(self, client, registered):
        response = client.get("/api/users/invalid-id", headers=bearer(registered["accessToken"]))

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid user ID"}

    def test_unknown_id(self, client, registered):
        response = client.get(f"/api/users/{ObjectId()}", headers=bearer(registered["accessToken"]))

        assert response.status_code == 404
        assert response.json() == {"message": "User not found"}

    def test_requires_authentication(self, client, registered):
        response = client.get(f"/api/users/{registered['user']['id']}")

        assert response.status_code == 401


class TestUpdate:
    def test_update_own_username(self, client, registered):
        user_id = registered["user"]["id"]

        response = client.put(
            f"/api/users/{user_id}",
            headers=bearer(registered["accessToken"]),
            json={"username": "renamed"},
        )

        assert response.status_code == 200
        assert response.json()["username"] == "renamed"
        assert response.json()["email"] == TEST_USER["email"]

    def test_password_change_takes_effect(self, client, registered):
        user_id = registered["user"]["id"]

        client.put(
            f"/api/users/{user_id}",
            headers=bearer(registered["accessToken"]),
            json={"password": "new-password"},
        )

        old = client.post("/api/users/login", json={"email": TEST_USER["email"], "password": TEST_USER["password"]})
        new = client.post("/api/users/login", json={"email": TEST_USER["email"], "password": "new-password"})
        assert old.status_code == 401
        assert new.status_code == 200

    def test_update_keeps_refresh_tokens(self, client, registered):
        client.put(
            f"/api/users/{registered['user']['id']}",
            headers=bearer(registered["accessToken"]),
            json={"username": "renamed"},
        )

        response = client.post("/api/users/refresh", json={"refreshToken": registered["refreshToken"]})

        assert response.status_code == 200

    def test_cannot_update_another_user(self, client, registered):
        other = client.post("/api/users/register", json=ANOTHER_USER).json()

        response = client.put(
            f"/api/users/{other['user']['id']}",
            headers=bearer(registered["accessToken"]),
            json={"username": "hijacked"},
        )

        assert response.status_code == 403
        assert response.json() == {"message": "Not authorized to update this user"}

    def test_cannot_take_an_existing_email(self, client, registered):
        client.post("/api/users/register", json=ANOTHER_USER)

        response = client.put(
            f"/api/users/{registered['user']['id']}",
            headers=bearer(registered["accessToken"]),
            json={"email": ANOTHER_USER["email"]},
        )

        assert response.status_code == 400
        assert response.json() == {"message": "User with this email or username already exists"}

    def test_invalid_fields_are_rejected(self, client, registered):
        user_id = registered["user"]["id"]

        for body in ({"email": "not-an-email"}, {"password": "123"}, {"username": "x"}):
            response = client.put(f"/api/users/{user_id}", headers=bearer(registered["accessToken"]), json=body)
            assert response.status_code == 400


class TestDelete:
    def test_delete_own_account(self, client, registered):
        user_id = registered["user"]["id"]

        response = client.delete(f"/api/users/{user_id}", headers=bearer(registered["accessToken"]))

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        again = client.get("/api/users", headers=bearer(registered["accessToken"]))
        assert again.status_code == 401

    def test_cannot_delete_another_user(self, client, registered):
        other = client.post("/api/users/register", json=ANOTHER_USER).json()

        response = client.delete(f"/api/users/{other['user']['id']}", headers=bearer(registered["accessToken"]))

        assert response.status_code == 403
        assert _login(client, ANOTHER_USER)["user"]["id"] == other["user"]["id"]

    def test_deleted_user_cannot_login_or_refresh(self, client, registered):
        client.delete(f"/api/users/{registered['user']['id']}", headers=bearer(registered["accessToken"]))

        login = client.post("/api/users/login", json={"email": TEST_USER["email"], "password": TEST_USER["password"]})
        refresh = client.post("/api/users/refresh", json={"refreshToken": registered["refreshToken"]})

        assert login.status_code == 401
        assert refresh.status_code == 401
