"""HTTP tests for the /schedules routes."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies.auth import get_current_user_id
from app.core.auth_jwt import create_access_token
from app.main import app
from app.schedules.models import ScheduleStatus


@pytest.fixture
def client(db_session, user):
    app.dependency_overrides[get_current_user_id] = lambda: user.id
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _create_body(workout_id, start="2030-05-01T10:00:00Z", **overrides):
    body = {"workout_id": workout_id, "scheduled_date": start}
    body.update(overrides)
    return body


class TestCreateRoute:
    def test_create(self, client, workout):
        response = client.post("/schedules", json=_create_body(workout.id, scheduled_time="10:00"))

        assert response.status_code == 201
        payload = response.json()
        assert payload["success"] is True
        assert payload["message"] == "Workout scheduled successfully"
        data = payload["data"]
        assert data["status"] == "SCHEDULED"
        assert data["duration"] == 60
        assert data["reminder_enabled"] is True
        assert data["reminder_time"] == 30
        assert data["workout"]["title"] == "Leg Day"
        assert data["scheduled_date"].startswith("2030-05-01T10:00:00")
        assert data["ends_at"].startswith("2030-05-01T11:00:00")

    def test_conflict_is_409(self, client, workout):
        first = client.post("/schedules", json=_create_body(workout.id)).json()["data"]

        response = client.post("/schedules", json=_create_body(workout.id, start="2030-05-01T10:30:00Z"))

        assert response.status_code == 409
        assert response.json()["detail"]["conflicting_schedule_id"] == first["id"]

    def test_unknown_workout_is_404(self, client):
        response = client.post("/schedules", json=_create_body("missing"))

        assert response.status_code == 404
        assert response.json()["detail"] == "Workout not found"

    def test_validation_is_422(self, client, workout):
        response = client.post("/schedules", json=_create_body(workout.id, duration=0))

        assert response.status_code == 422

    def test_recurring_create(self, client, workout):
        response = client.post(
            "/schedules",
            json=_create_body(
                workout.id,
                start="2030-01-07T07:00:00Z",
                is_recurring=True,
                recurrence_rule="Weekly",
                recurrence_end="2030-01-28T07:00:00Z",
            ),
        )

        assert response.status_code == 201
        listed = client.get("/schedules").json()
        assert listed["count"] == 4
        parent_id = response.json()["data"]["id"]
        assert sum(1 for s in listed["data"] if s["parent_schedule_id"] == parent_id) == 3


class TestReadRoutes:
    def test_list_with_filters(self, client, make_schedule):
        make_schedule(datetime(2030, 5, 1, 10, 0))
        make_schedule(datetime(2030, 5, 2, 10, 0), status=ScheduleStatus.CANCELLED)

        response = client.get("/schedules", params={"status": "CANCELLED"})

        assert response.status_code == 200
        payload = response.json()
        assert payload["count"] == 1
        assert payload["data"][0]["status"] == "CANCELLED"

    def test_list_rejects_unknown_status(self, client):
        assert client.get("/schedules", params={"status": "PAUSED"}).status_code == 422

    def test_get_and_not_owned(self, client, make_schedule, other_user):
        mine = make_schedule(datetime(2030, 5, 1, 10, 0))
        theirs = make_schedule(datetime(2030, 5, 1, 10, 0), user_id=other_user.id)

        assert client.get(f"/schedules/{mine.id}").status_code == 200
        assert client.get(f"/schedules/{theirs.id}").status_code == 404

    def test_calendar(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.get("/schedules/calendar", params={"year": 2030, "month": 5})

        assert response.status_code == 200
        payload = response.json()
        assert (payload["year"], payload["month"]) == (2030, 5)
        assert payload["data"]["2030-05-01"][0]["id"] == schedule.id

    def test_calendar_invalid_month(self, client):
        assert client.get("/schedules/calendar", params={"year": 2030, "month": 13}).status_code == 400

    def test_upcoming(self, client, make_schedule):
        soon = make_schedule(datetime.now(UTC).replace(tzinfo=None, microsecond=0) + timedelta(days=2))

        response = client.get("/schedules/upcoming")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["data"]] == [soon.id]


class TestWriteRoutes:
    def test_update(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.put(f"/schedules/{schedule.id}", json={"notes": "bring water"})

        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "bring water"

    def test_update_conflict(self, client, make_schedule):
        make_schedule(datetime(2030, 5, 1, 12, 0))
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.put(f"/schedules/{schedule.id}", json={"scheduled_date": "2030-05-01T11:30:00Z"})

        assert response.status_code == 409

    def test_update_to_in_progress_is_422(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.put(f"/schedules/{schedule.id}", json={"status": "IN_PROGRESS"})

        assert response.status_code == 422
        assert client.get(f"/schedules/{schedule.id}").json()["data"]["status"] == "SCHEDULED"

    def test_update_time_mismatch_is_400(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.put(f"/schedules/{schedule.id}", json={"scheduled_time": "18:45"})

        assert response.status_code == 400
        assert "does not match" in response.json()["detail"]

    def test_cancel(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.delete(f"/schedules/{schedule.id}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CANCELLED"
        assert client.get(f"/schedules/{schedule.id}").json()["data"]["status"] == "CANCELLED"

    def test_start(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))

        response = client.post(f"/schedules/{schedule.id}/start")

        assert response.status_code == 200
        assert response.json()["data"]["schedule_id"] == schedule.id
        assert client.get(f"/schedules/{schedule.id}").json()["data"]["status"] == "IN_PROGRESS"

    def test_start_twice_is_400(self, client, make_schedule):
        schedule = make_schedule(datetime(2030, 5, 1, 10, 0))
        client.post(f"/schedules/{schedule.id}/start")

        response = client.post(f"/schedules/{schedule.id}/start")

        assert response.status_code == 400
        assert response.json()["detail"] == "This workout has already been started or completed"


class TestAuthentication:
    def test_missing_token_is_401(self, db_session):
        assert TestClient(app).get("/schedules").status_code == 401

    def test_bearer_token(self, db_session, user):
        headers = {"Authorization": f"Bearer {create_access_token(user.id)}"}

        response = TestClient(app).get("/schedules", headers=headers)

        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_unknown_user_is_401(self, db_session):
        headers = {"Authorization": f"Bearer {create_access_token('ghost')}"}

        assert TestClient(app).get("/schedules", headers=headers).status_code == 401

    def test_health(self):
        assert TestClient(app).get("/health").json() == {"status": "ok"}
