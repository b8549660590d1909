import uuid
import pytest

from status_hub.database import get_db
from status_hub.main import app
from status_hub.models import ComponentStatus, LogEntry, PLACEHOLDER_DETAIL
from status_hub.stores import ACKABLE_TYPES


class MemoryDB:
    def __init__(self):
        self.statuses = {}
        self.logs = []


class FakeStatusStore:
    def __init__(self, db: MemoryDB):
        self.db = db

    async def lock_or_create(self, component_id, name, now):
        if component_id not in self.db.statuses:
            self.db.statuses[component_id] = ComponentStatus(
                id=component_id, name=name, detail=PLACEHOLDER_DETAIL, severity="ok", updated_at=now
            )
        return self.db.statuses[component_id]

    async def list_all(self):
        return [self.db.statuses[k] for k in sorted(self.db.statuses)]


class FakeLogStore:
    def __init__(self, db: MemoryDB, retention=200):
        self.db = db
        self.retention = retention

    async def append(self, timestamp, type, component, title, acknowledged):
        entry = LogEntry(
            id=uuid.uuid4(), timestamp=timestamp, type=type,
            component=component, title=title, acknowledged=acknowledged
        )
        self.db.logs.append(entry)
        return entry

    async def enforce_retention(self):
        newest = sorted(self.db.logs, key=lambda l: l.timestamp, reverse=True)
        self.db.logs = newest[:self.retention]

    async def recent(self, limit=None):
        newest = sorted(self.db.logs, key=lambda l: l.timestamp, reverse=True)
        return newest[:limit or self.retention]

    async def acknowledge(self, log_id):
        for entry in self.db.logs:
            if entry.id == log_id and not entry.acknowledged and entry.type in ACKABLE_TYPES:
                entry.acknowledged = True
                return entry
        return None


@pytest.fixture
def memory_db():
    return MemoryDB()


@pytest.fixture
def fake_session(mocker):
    """AsyncSession stand-in whose begin() works as an async context manager."""
    session = mocker.MagicMock()
    session.begin.return_value.__aenter__.return_value = session
    session.begin.return_value.__aexit__.return_value = False
    return session


@pytest.fixture
def memory_stores(mocker, memory_db):
    """Routes reconciler and snapshot store access to the in-memory tables."""
    status_factory = lambda session: FakeStatusStore(memory_db)
    log_factory = lambda session, retention=200: FakeLogStore(memory_db, retention)

    for module in ("status_hub.reconciler", "status_hub.snapshot"):
        mocker.patch(f"{module}.StatusStore", status_factory)
        mocker.patch(f"{module}.LogStore", log_factory)
    return memory_db


@pytest.fixture
def override_db(fake_session):
    async def override_get_db():
        yield fake_session

    app.dependency_overrides[get_db] = override_get_db
    yield fake_session
    app.dependency_overrides.pop(get_db, None)
