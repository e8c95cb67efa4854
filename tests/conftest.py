"""Shared fixtures: a fresh database per test plus the services built on it."""

import pytest
from datetime import date

from chemlab.config import Settings
from chemlab.db import DatabaseConnection
from chemlab.db.database_models import BorrowingDO, ChemicalDO, EquipmentDO, UserDO
from chemlab.db.repositories import (
    AuditLogRepository,
    BorrowingRepository,
    ChemicalRepository,
    EquipmentRepository,
    UserRepository,
)
from chemlab.services import ConversationStateStore, LabDataService
from chemlab.services.chatbot import ChatbotService


TEST_TODAY = date(2024, 6, 3)


@pytest.fixture
def today():
    """Fixed 'today' used by every date-relative query in tests."""
    return TEST_TODAY


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway database."""
    return Settings(
        database_path=str(tmp_path / "chemlab.db"),
        log_level="WARNING",
        log_file=None
    )


@pytest.fixture
def db_conn(test_settings):
    """Provide a fresh database connection."""
    db = DatabaseConnection(test_settings.database_path)
    yield db
    db.close()


@pytest.fixture
def users(db_conn):
    """One user per role, keyed by role."""
    repo = UserRepository(db_conn.conn)
    return {
        "admin": repo.create(UserDO(id=0, name="Ada Admin", role="admin", email="ada@lab.test")),
        "technician": repo.create(UserDO(id=0, name="Tom Tech", role="technician")),
        "borrower": repo.create(UserDO(id=0, name="Bea Borrower", role="borrower")),
    }


@pytest.fixture
def add_chemical(db_conn):
    """Factory inserting a chemical and returning its id."""
    repo = ChemicalRepository(db_conn.conn)

    def _add(**overrides):
        defaults = dict(id=0, name="Sodium Chloride", quantity=100.0, unit="g", category="Salt")
        defaults.update(overrides)
        return repo.create(ChemicalDO(**defaults))

    return _add


@pytest.fixture
def add_equipment(db_conn):
    """Factory inserting an equipment item and returning its id."""
    repo = EquipmentRepository(db_conn.conn)

    def _add(**overrides):
        defaults = dict(id=0, name="Centrifuge", status="available", category="Separation", location="Lab A")
        defaults.update(overrides)
        return repo.create(EquipmentDO(**defaults))

    return _add


@pytest.fixture
def add_borrowing(db_conn):
    """Factory inserting a borrowing and returning its id."""
    repo = BorrowingRepository(db_conn.conn)

    def _add(**overrides):
        defaults = dict(id=0, borrower_id=1, status="pending")
        defaults.update(overrides)
        return repo.create(BorrowingDO(**defaults))

    return _add


@pytest.fixture
def lab_data(db_conn, test_settings, today):
    """LabDataService over the test database with a fixed date."""
    return LabDataService(db_conn.conn, test_settings, today=lambda: today)


@pytest.fixture
def state_store(db_conn):
    return ConversationStateStore(db_conn.conn)


@pytest.fixture
def audit_repo(db_conn):
    return AuditLogRepository(db_conn.conn)


@pytest.fixture
def chatbot(lab_data, state_store, audit_repo, test_settings):
    """ChatbotService wired to the test database."""
    return ChatbotService(lab_data, state_store, audit_repo, test_settings)
