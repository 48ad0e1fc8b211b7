from conftest import bearer, signup

from src.organizer.models import Collection
from src.organizer.security import issue_token


class TestTodolistFlow:
    def test_create_list_and_foreign_delete(self, client, store):
        amy = signup(client, "amy")
        res = client.post(
            "/api/todolist",
            json={"description": "buy milk", "creator": amy["userId"]},
            headers=bearer(amy),
        )
        assert res.status_code == 201
        item = res.json()["TDItem"]
        assert item["description"] == "buy milk"
        assert item["creator"] == amy["userId"]
        assert "version" not in item

        res = client.get(f"/api/todolist/user/{amy['userId']}")
        assert res.status_code == 200
        items = res.json()["usertdItems"]
        assert [i["description"] for i in items] == ["buy milk"]

        bob = signup(client, "bob")
        res = client.delete(f"/api/todolist/{item['id']}", headers=bearer(bob))
        assert res.status_code == 401
        assert res.json() == {"message": "You're unable to delete this item"}

        res = client.get(f"/api/todolist/user/{amy['userId']}")
        assert [i["id"] for i in res.json()["usertdItems"]] == [item["id"]]

    def test_creator_defaults_to_caller(self, client, store):
        amy = signup(client, "amy")
        res = client.post("/api/todolist", json={"description": "water plants"}, headers=bearer(amy))
        assert res.status_code == 201
        item_id = res.json()["TDItem"]["id"]
        assert store.find_by_id(Collection.USERS, amy["userId"])["todolist"] == [item_id]

    def test_owner_delete_unlinks_from_user(self, client, store):
        amy = signup(client, "amy")
        first = client.post("/api/todolist", json={"description": "one"}, headers=bearer(amy)).json()["TDItem"]
        second = client.post("/api/todolist", json={"description": "two"}, headers=bearer(amy)).json()["TDItem"]
        assert store.find_by_id(Collection.USERS, amy["userId"])["todolist"] == [first["id"], second["id"]]

        res = client.delete(f"/api/todolist/{first['id']}", headers=bearer(amy))
        assert res.status_code == 200
        assert res.json() == {"message": "Deleted item"}

        assert store.find_by_id(Collection.TODOLIST, first["id"]) is None
        assert store.find_by_id(Collection.USERS, amy["userId"])["todolist"] == [second["id"]]

    def test_delete_missing_item(self, client):
        amy = signup(client, "amy")
        res = client.delete("/api/todolist/does-not-exist", headers=bearer(amy))
        assert res.status_code == 404
        assert res.json()["message"] == "Could not find todolist item for the provided id"

    def test_list_for_user_without_items(self, client):
        amy = signup(client, "amy")
        res = client.get(f"/api/todolist/user/{amy['userId']}")
        assert res.status_code == 404
        assert res.json()["message"] == "Could not find todolist items for the provided user id"


class TestTodolistValidationAndAuth:
    def test_requires_token(self, client, store):
        amy = signup(client, "amy")
        res = client.post("/api/todolist", json={"description": "x", "creator": amy["userId"]})
        assert res.status_code == 401
        assert res.json() == {"message": "Authentication failed"}
        assert store.find_by_filter(Collection.TODOLIST, {}) == []

    def test_rejects_invalid_token(self, client):
        res = client.post(
            "/api/todolist",
            json={"description": "x"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert res.status_code == 401

    def test_empty_description(self, client, store):
        amy = signup(client, "amy")
        res = client.post("/api/todolist", json={"description": "   "}, headers=bearer(amy))
        assert res.status_code == 422
        assert res.json() == {"message": "Invalid inputs provided"}
        assert store.find_by_id(Collection.USERS, amy["userId"])["todolist"] == []

    def test_creator_must_be_caller(self, client, store):
        amy = signup(client, "amy")
        bob = signup(client, "bob")
        res = client.post(
            "/api/todolist",
            json={"description": "x", "creator": bob["userId"]},
            headers=bearer(amy),
        )
        assert res.status_code == 401
        assert store.find_by_id(Collection.USERS, bob["userId"])["todolist"] == []

    def test_token_for_unknown_user(self, client, store):
        token = issue_token("missing-user", "ghost")
        res = client.post(
            "/api/todolist",
            json={"description": "x"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert res.status_code == 404
        assert res.json()["message"] == "Could not find user for the provided id"
        assert store.find_by_filter(Collection.TODOLIST, {}) == []
