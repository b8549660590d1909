"""
Status reconciliation.

An incoming report always refreshes the component's status row. A log entry
is written only when the (severity, detail) pair of that row actually
changes, so probes can repeat the same report as often as they like.
"""
import math
import uuid
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from status_hub.errors import AckError, StoreError, ValidationError
from status_hub.models import PLACEHOLDER_DETAIL
from status_hub.schemas import IngestReport
from status_hub.stores import DEFAULT_RETENTION, LogStore, StatusStore

LOG_TYPES = {"ok": "ok", "alarm": "alarm", "warning": "warning"}

# Range of the BIGINT updated_at column
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def fingerprint(status) -> Tuple[str, str]:
    return (status.severity, status.detail)


def resolve_detail(report: IngestReport) -> str:
    return report.detail or report.reason or PLACEHOLDER_DETAIL


def resolve_updated_at(value, now: int) -> int:
    """Reporter timestamp when it is a usable non-zero number that fits BIGINT, else receipt time."""
    if isinstance(value, bool) or value is None:
        return now
    if isinstance(value, int):
        ts = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return now
        if not math.isfinite(number):
            return now
        ts = int(number)
    if ts == 0 or ts < INT64_MIN or ts > INT64_MAX:
        return now
    return ts


def log_type(severity: str) -> str:
    return LOG_TYPES.get(severity, "info")


def log_title(name: str, severity: str, reason: Optional[str] = None) -> str:
    if severity == "ok":
        title = f"{name} back to normal"
    elif severity == "alarm":
        title = f"{name} raised an alarm"
    else:
        title = f"{name} reports {severity}"
    if reason:
        title = f"{title} ({reason})"
    return title


class Reconciler:
    def __init__(self, statuses: StatusStore, logs: LogStore):
        self.statuses = statuses
        self.logs = logs

    async def ingest(self, report: IngestReport, now: int):
        """
        Applies one report. Returns the new LogEntry when the effective
        status changed, None for a silent refresh.
        Must run inside a transaction: the status row stays locked from the
        read below until commit.
        """
        if not report.component or not report.severity:
            raise ValidationError(ValidationError.MISSING_FIELDS)

        component_id = report.component.lower()
        status = await self.statuses.lock_or_create(component_id, report.component, now)
        before = fingerprint(status)

        status.name = report.component
        status.severity = report.severity
        status.detail = resolve_detail(report)
        status.updated_at = resolve_updated_at(report.updatedAt, now)

        if fingerprint(status) == before:
            logger.debug(f"Status refresh for {component_id}: {report.severity}")
            return None

        entry = await self.logs.append(
            timestamp=now,
            type=log_type(report.severity),
            component=report.component,
            title=log_title(report.component, report.severity, report.reason),
            acknowledged=report.severity == "ok"
        )
        await self.logs.enforce_retention()
        logger.info(f"Status change for {component_id}: {before[0]} -> {report.severity}")
        return entry


async def ingest_report(session: AsyncSession, report: IngestReport, now: int, retention: int = DEFAULT_RETENTION):
    """Runs the reconciler in one transaction on the given session."""
    try:
        async with session.begin():
            reconciler = Reconciler(StatusStore(session), LogStore(session, retention))
            return await reconciler.ingest(report, now)
    except (SQLAlchemyError, OSError) as e:
        raise StoreError() from e


async def acknowledge(session: AsyncSession, log_id: str):
    """Acknowledges a warning/alarm entry; every failure looks the same to the caller."""
    try:
        parsed_id = uuid.UUID(str(log_id))
    except ValueError:
        raise AckError()

    try:
        async with session.begin():
            entry = await LogStore(session).acknowledge(parsed_id)
    except (SQLAlchemyError, OSError) as e:
        raise StoreError() from e

    if entry is None:
        raise AckError()
    logger.info(f"Log entry {parsed_id} acknowledged")
    return entry
