import uuid
from sqlalchemy import Column, BigInteger, String, Text, Boolean, Index
from sqlalchemy.dialects.postgresql import UUID
from status_hub.database import Base

PLACEHOLDER_DETAIL = "—"

class ComponentStatus(Base):
    __tablename__ = "statuses"

    id = Column(String, primary_key=True)           # lowercased component name
    name = Column(String, nullable=False)           # as reported, original casing
    detail = Column(Text, nullable=False, default=PLACEHOLDER_DETAIL)
    severity = Column(String, nullable=False)       # ok, warning, alarm, ...
    updated_at = Column(BigInteger, nullable=False) # epoch ms

class LogEntry(Base):
    __tablename__ = "logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timestamp = Column("ts", BigInteger, nullable=False) # epoch ms, receipt time
    type = Column(String, nullable=False)                # ok, warning, alarm, info
    component = Column(String, nullable=False)
    title = Column(Text, nullable=False)
    acknowledged = Column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("ix_logs_ts", "ts"),)
