# (c) Copyright Datacraft, 2026
"""Audit log ORM model."""
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from registrar.core.db.base import Base, JSONType


class AuditLogORM(Base):
	"""Append-only audit entry. The id is the insertion sequence."""
	__tablename__ = "audit_logs"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	action: Mapped[str] = mapped_column(String(100), nullable=False)
	entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
	entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
	actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
	details: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
	timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
	checksum: Mapped[str] = mapped_column(String(64), nullable=False)

	__table_args__ = (
		Index("idx_audit_logs_entity", "entity_type", "entity_id"),
		Index("idx_audit_logs_timestamp", "timestamp", "id"),
	)
