"""
SQLAlchemy-backed stores for the two tables.

Stores never open or commit transactions themselves; the caller owns the
session and decides the transaction scope (see reconciler.ingest_report).
"""
import uuid
from typing import List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from status_hub.models import ComponentStatus, LogEntry, PLACEHOLDER_DETAIL

ACKABLE_TYPES = ("warning", "alarm")
DEFAULT_RETENTION = 200


class StatusStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_or_create(self, component_id: str, name: str, now: int) -> ComponentStatus:
        """
        Returns the status row for component_id, locked until the end of the
        current transaction. A missing row is first inserted with the
        defaults (severity ok, placeholder detail).
        """
        await self.session.execute(
            insert(ComponentStatus)
            .values(
                id=component_id,
                name=name,
                detail=PLACEHOLDER_DETAIL,
                severity="ok",
                updated_at=now
            )
            .on_conflict_do_nothing(index_elements=[ComponentStatus.id])
        )
        result = await self.session.execute(
            select(ComponentStatus)
            .where(ComponentStatus.id == component_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def list_all(self) -> List[ComponentStatus]:
        result = await self.session.execute(select(ComponentStatus).order_by(ComponentStatus.id.asc()))
        return list(result.scalars().all())


class LogStore:
    def __init__(self, session: AsyncSession, retention: int = DEFAULT_RETENTION):
        self.session = session
        self.retention = retention

    async def append(self, timestamp: int, type: str, component: str, title: str, acknowledged: bool) -> LogEntry:
        entry = LogEntry(
            id=uuid.uuid4(),
            timestamp=timestamp,
            type=type,
            component=component,
            title=title,
            acknowledged=acknowledged
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def enforce_retention(self):
        """Deletes everything past the newest `retention` entries."""
        newest = (
            select(LogEntry.id)
            .order_by(LogEntry.timestamp.desc())
            .limit(self.retention)
            .correlate(None)
        )
        await self.session.execute(
            delete(LogEntry)
            .where(LogEntry.id.not_in(newest))
            .execution_options(synchronize_session=False)
        )

    async def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        result = await self.session.execute(
            select(LogEntry)
            .order_by(LogEntry.timestamp.desc())
            .limit(limit or self.retention)
        )
        return list(result.scalars().all())

    async def acknowledge(self, log_id: uuid.UUID) -> Optional[LogEntry]:
        """
        Flips acknowledged on an unacknowledged warning/alarm entry in a
        single conditional UPDATE. Returns None when nothing matched.
        """
        result = await self.session.execute(
            update(LogEntry)
            .where(
                LogEntry.id == log_id,
                LogEntry.acknowledged.is_(False),
                LogEntry.type.in_(ACKABLE_TYPES)
            )
            .values(acknowledged=True)
            .returning(LogEntry)
            .execution_options(synchronize_session=False)
        )
        return result.scalars().first()
