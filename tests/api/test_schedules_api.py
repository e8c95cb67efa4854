"""Lecture schedule API integration tests."""

import json
from datetime import timedelta

from httpx import AsyncClient

from chemlab.api.v1 import schedules as schedules_api


def _schedule_body(day, **overrides):
    body = {
        "title": "Organic Chemistry Lab",
        "scheduled_date": day.isoformat(),
        "lab_name": "Lab B",
        "start_time": "09:00",
        "end_time": "11:00",
        "instructor": "Dr. Curie"
    }
    body.update(overrides)
    return body


class TestCreateSchedule:
    """Schedule creation endpoint tests."""

    async def test_create_and_broadcast(self, client: AsyncClient, today, schedule_registry):
        queue = schedule_registry.register()
        response = await client.post("/api/v1/schedules", json=_schedule_body(today))
        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["title"] == "Organic Chemistry Lab"

        event = queue.get_nowait()
        assert event["type"] == "schedule_created"
        assert event["data"]["id"] == data["id"]
        assert event["data"]["scheduled_date"] == today.isoformat()

    async def test_end_before_start(self, client: AsyncClient, today):
        response = await client.post(
            "/api/v1/schedules", json=_schedule_body(today, start_time="11:00", end_time="10:00")
        )
        assert response.status_code == 400

    async def test_bad_time_format(self, client: AsyncClient, today):
        response = await client.post("/api/v1/schedules", json=_schedule_body(today, start_time="9am"))
        assert response.status_code == 422


class TestListSchedules:
    """Schedule listing endpoint tests."""

    async def test_defaults_to_today(self, client: AsyncClient, today):
        await client.post("/api/v1/schedules", json=_schedule_body(today, start_time="13:00", end_time="14:00"))
        await client.post("/api/v1/schedules", json=_schedule_body(today, title="Early Lab"))
        await client.post("/api/v1/schedules", json=_schedule_body(today + timedelta(days=1), title="Tomorrow"))

        response = await client.get("/api/v1/schedules")
        assert response.status_code == 200
        data = response.json()
        assert data["scheduled_date"] == today.isoformat()
        assert data["total"] == 2
        assert data["schedules"][0]["title"] == "Early Lab"

    async def test_explicit_date(self, client: AsyncClient, today):
        tomorrow = today + timedelta(days=1)
        await client.post("/api/v1/schedules", json=_schedule_body(tomorrow, title="Tomorrow"))

        response = await client.get("/api/v1/schedules", params={"date": tomorrow.isoformat()})
        assert [s["title"] for s in response.json()["schedules"]] == ["Tomorrow"]


class TestScheduleEvents:
    """SUT: schedules.schedule_events"""

    async def test_stream_until_close(self, schedule_registry):
        response = await schedules_api.schedule_events(schedule_registry)
        assert response.media_type == "text/event-stream"
        stream = response.body_iterator

        assert await stream.__anext__() == ": connected\n\n"
        assert schedule_registry.subscriber_count == 1

        schedule_registry.broadcast("schedule_created", {"id": 5})
        chunk = await stream.__anext__()
        assert chunk.startswith("event: schedule_created\ndata: ")
        payload = json.loads(chunk.split("data: ", 1)[1])
        assert payload["data"] == {"id": 5}

        schedule_registry.close_all()
        chunks = [c async for c in stream]
        assert chunks == []
        assert schedule_registry.subscriber_count == 0

    async def test_keepalive(self, schedule_registry, monkeypatch):
        monkeypatch.setattr(schedules_api, "KEEPALIVE_SECONDS", 0.01)
        response = await schedules_api.schedule_events(schedule_registry)
        stream = response.body_iterator
        await stream.__anext__()
        assert await stream.__anext__() == ": keepalive\n\n"
        await stream.aclose()
        assert schedule_registry.subscriber_count == 0
