# (c) Copyright Datacraft, 2026
"""Letters ORM models."""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from registrar.core.db.base import Base, JSONType
from registrar.core.utils.tz import utc_now


class LetterORM(Base):
	"""Submitted document record."""
	__tablename__ = "letters"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	reference: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
	title: Mapped[str] = mapped_column(String(500), nullable=False)
	content: Mapped[str | None] = mapped_column(Text)
	folder_id: Mapped[int | None] = mapped_column(Integer)
	department: Mapped[str] = mapped_column(String(255), nullable=False)
	status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

	requires_passcode: Mapped[bool] = mapped_column(Boolean, default=False)
	verification_code: Mapped[str | None] = mapped_column(String(64), unique=True)

	uploaded_by: Mapped[str] = mapped_column(String(255), nullable=False)
	uploaded_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), default=utc_now, nullable=False
	)
	verified_by: Mapped[str | None] = mapped_column(String(255))
	verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	rejection_reason: Mapped[str | None] = mapped_column(Text)

	# `metadata` is reserved on declarative classes
	doc_metadata: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)

	__table_args__ = (
		Index("idx_letters_department_status", "department", "status"),
	)

	def __repr__(self) -> str:
		return f"Letter({self.id=}, {self.reference=}, {self.status=})"
