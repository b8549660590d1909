from pydantic import BaseModel
from typing import Any, List, Optional

class IngestReport(BaseModel):
    component: Optional[str] = None
    severity: Optional[str] = None
    reason: Optional[str] = None
    detail: Optional[str] = None
    updatedAt: Optional[Any] = None # epoch ms, number or numeric string

class StatusOut(BaseModel):
    id: str
    name: str
    detail: str
    severity: str
    updatedAt: int

    @classmethod
    def from_row(cls, row) -> "StatusOut":
        return cls(
            id=row.id,
            name=row.name,
            detail=row.detail,
            severity=row.severity,
            updatedAt=row.updated_at
        )

class LogOut(BaseModel):
    id: str
    timestamp: int
    type: str
    component: str
    title: str
    acknowledged: bool

    @classmethod
    def from_row(cls, row) -> "LogOut":
        return cls(
            id=str(row.id),
            timestamp=row.timestamp,
            type=row.type,
            component=row.component,
            title=row.title,
            acknowledged=row.acknowledged
        )

class Snapshot(BaseModel):
    statuses: List[StatusOut] = []
    logs: List[LogOut] = []
    generatedAt: int

class OkResponse(BaseModel):
    ok: bool = True

class AckResponse(OkResponse):
    log: LogOut
