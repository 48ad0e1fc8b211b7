from conftest import bearer, signup

from src.organizer.models import Collection


def calendar_payload(**overrides):
    payload = {
        "title": "Dentist",
        "description": "Check-up",
        "date": "2025-02-01",
        "time": "09:30",
    }
    payload.update(overrides)
    return payload


class TestCalendar:
    def test_create_and_list(self, client, store):
        amy = signup(client, "amy")
        res = client.post("/api/calendar", json=calendar_payload(), headers=bearer(amy))
        assert res.status_code == 201
        item = res.json()["CalendarItem"]
        assert item["title"] == "Dentist"
        assert item["date"] == "2025-02-01"
        assert item["time"] == "09:30"
        assert item["creator"] == amy["userId"]

        res = client.get(f"/api/calendar/user/{amy['userId']}")
        assert res.status_code == 200
        assert [i["id"] for i in res.json()["userCalendarItems"]] == [item["id"]]
        assert store.find_by_id(Collection.USERS, amy["userId"])["calendar"] == [item["id"]]

    def test_date_and_time_are_opaque(self, client):
        amy = signup(client, "amy")
        res = client.post(
            "/api/calendar",
            json=calendar_payload(date="next tuesday", time="after lunch"),
            headers=bearer(amy),
        )
        assert res.status_code == 201
        assert res.json()["CalendarItem"]["date"] == "next tuesday"

    def test_missing_field(self, client):
        amy = signup(client, "amy")
        payload = calendar_payload()
        del payload["time"]
        res = client.post("/api/calendar", json=payload, headers=bearer(amy))
        assert res.status_code == 422
        assert res.json() == {"message": "Invalid inputs provided"}

    def test_delete(self, client, store):
        amy = signup(client, "amy")
        item = client.post("/api/calendar", json=calendar_payload(), headers=bearer(amy)).json()["CalendarItem"]

        res = client.delete(f"/api/calendar/{item['id']}", headers=bearer(amy))
        assert res.status_code == 200
        assert res.json() == {"message": "Deleted calendar item"}
        assert store.find_by_id(Collection.CALENDAR, item["id"]) is None
        assert store.find_by_id(Collection.USERS, amy["userId"])["calendar"] == []

        res = client.get(f"/api/calendar/user/{amy['userId']}")
        assert res.status_code == 404

    def test_delete_by_other_user(self, client, store):
        amy = signup(client, "amy")
        bob = signup(client, "bob")
        item = client.post("/api/calendar", json=calendar_payload(), headers=bearer(amy)).json()["CalendarItem"]

        res = client.delete(f"/api/calendar/{item['id']}", headers=bearer(bob))
        assert res.status_code == 401
        assert store.find_by_id(Collection.CALENDAR, item["id"]) is not None
        assert store.find_by_id(Collection.USERS, amy["userId"])["calendar"] == [item["id"]]

    def test_delete_requires_token(self, client):
        res = client.delete("/api/calendar/whatever")
        assert res.status_code == 401
