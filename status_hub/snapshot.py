from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from status_hub.errors import StoreError
from status_hub.schemas import LogOut, Snapshot, StatusOut
from status_hub.stores import DEFAULT_RETENTION, LogStore, StatusStore


async def assemble_snapshot(session: AsyncSession, now: int, limit: int = DEFAULT_RETENTION) -> Snapshot:
    """Current statuses (by id) plus the newest `limit` log entries. Read-only."""
    try:
        statuses = await StatusStore(session).list_all()
        logs = await LogStore(session, limit).recent(limit)
    except (SQLAlchemyError, OSError) as e:
        raise StoreError() from e

    return Snapshot(
        statuses=[StatusOut.from_row(s) for s in statuses],
        logs=[LogOut.from_row(l) for l in logs],
        generatedAt=now
    )
