from conftest import signup

from src.organizer.models import Collection
from src.organizer.security import verify_password, verify_token


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestSignup:
    def test_signup_returns_token_for_new_user(self, client, store):
        res = client.post(
            "/api/users/signup",
            json={"username": "amy", "email": "a@x.com", "password": "p"},
        )
        assert res.status_code == 201
        body = res.json()
        assert body["username"] == "amy"
        assert body["token"]

        identity = verify_token(body["token"])
        assert identity.user_id == body["userId"]
        assert identity.username == "amy"

        user = store.find_by_id(Collection.USERS, body["userId"])
        assert user is not None
        assert user["posts"] == [] and user["calendar"] == [] and user["todolist"] == []
        # Only the hash is stored
        assert user["password"] != "p"
        assert verify_password("p", user["password"])

    def test_signup_normalizes_email(self, client, store):
        body = signup(client, "bob", email="  Bob@Example.COM ")
        assert store.find_by_id(Collection.USERS, body["userId"])["email"] == "bob@example.com"

    def test_signup_duplicate_username(self, client, store):
        signup(client, "amy")
        res = client.post(
            "/api/users/signup",
            json={"username": "amy", "email": "other@x.com", "password": "q"},
        )
        assert res.status_code == 422
        assert res.json() == {"message": "Signing up failed, username already exists"}
        assert len(store.find_by_filter(Collection.USERS, {"username": "amy"})) == 1

    def test_signup_empty_fields(self, client, store):
        res = client.post("/api/users/signup", json={"username": "  ", "email": "a@x.com", "password": "p"})
        assert res.status_code == 422
        assert res.json() == {"message": "Invalid inputs provided"}

        res = client.post("/api/users/signup", json={"username": "amy", "email": "a@x.com", "password": ""})
        assert res.status_code == 422
        assert store.find_by_filter(Collection.USERS, {}) == []

    def test_signup_invalid_email(self, client):
        res = client.post("/api/users/signup", json={"username": "amy", "email": "nope", "password": "p"})
        assert res.status_code == 422
        assert res.json()["message"] == "Invalid inputs provided"

    def test_signup_missing_body(self, client):
        res = client.post("/api/users/signup")
        assert res.status_code == 422


class TestLogin:
    def test_login_after_signup(self, client):
        created = signup(client, "amy", password="secret")
        res = client.post("/api/users/login", json={"username": "amy", "password": "secret"})
        assert res.status_code == 200
        body = res.json()
        assert body["userId"] == created["userId"]
        assert body["username"] == "amy"

        identity = verify_token(body["token"])
        assert identity.user_id == created["userId"]
        assert identity.username == "amy"

    def test_login_wrong_password(self, client):
        signup(client, "amy", password="secret")
        res = client.post("/api/users/login", json={"username": "amy", "password": "wrong"})
        assert res.status_code == 401
        assert res.json() == {"message": "Could not log in, invalid credentials"}

    def test_login_unknown_user(self, client):
        res = client.post("/api/users/login", json={"username": "ghost", "password": "x"})
        assert res.status_code == 401
        assert res.json()["message"] == "Could not log in, invalid credentials"

    def test_login_missing_fields(self, client):
        signup(client, "amy")
        res = client.post("/api/users/login", json={})
        assert res.status_code == 401

    def test_login_with_surrounding_spaces_in_password(self, client):
        credentials = {"username": "amy", "email": "amy@example.com", "password": "  correct horse  "}
        assert client.post("/api/users/signup", json=credentials).status_code == 201

        res = client.post("/api/users/login", json=credentials)
        assert res.status_code == 200
        assert res.json()["username"] == "amy"

        trimmed = {"username": "amy", "password": "correct horse"}
        assert client.post("/api/users/login", json=trimmed).status_code == 401

    def test_username_trimmed_on_signup_and_login(self, client, store):
        credentials = {"username": " amy ", "email": "amy@example.com", "password": "p"}
        body = signup(client, **credentials)
        assert body["username"] == "amy"

        res = client.post("/api/users/login", json={"username": " amy ", "password": "p"})
        assert res.status_code == 200
        assert res.json()["userId"] == body["userId"]
