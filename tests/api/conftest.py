"""Pytest fixtures for API testing."""

import pytest
from httpx import AsyncClient, ASGITransport

from chemlab import main
from chemlab.api.v1 import chatbot as chatbot_api
from chemlab.api.v1 import schedules as schedules_api
from chemlab.api.v1 import usage as usage_api
from chemlab.services import ScheduleUpdateRegistry


@pytest.fixture
def schedule_registry():
    return ScheduleUpdateRegistry()


@pytest.fixture
async def client(monkeypatch, chatbot, lab_data, state_store, audit_repo, schedule_registry):
    """Async HTTP client with every router wired to the per-test database."""
    # Set services in API modules
    monkeypatch.setattr(chatbot_api, "chatbot_service", chatbot)
    monkeypatch.setattr(chatbot_api, "lab_data", lab_data)
    monkeypatch.setattr(chatbot_api, "state_store", state_store)
    monkeypatch.setattr(chatbot_api, "audit_repo", audit_repo)
    monkeypatch.setattr(usage_api, "lab_data", lab_data)
    monkeypatch.setattr(schedules_api, "lab_data", lab_data)
    monkeypatch.setattr(schedules_api, "schedule_registry", schedule_registry)
    monkeypatch.setattr(main, "lab_data_instance", lab_data)

    transport = ASGITransport(app=main.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
