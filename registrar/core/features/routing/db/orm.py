# (c) Copyright Datacraft, 2026
"""Routing ORM models."""
from datetime import datetime

from sqlalchemy import (
	Boolean,
	CheckConstraint,
	DateTime,
	ForeignKey,
	Index,
	Integer,
	String,
	Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from registrar.core.db.base import Base, JSONType
from registrar.core.utils.tz import utc_now


class RoutingRuleORM(Base):
	"""Department routing rule definition."""
	__tablename__ = "routing_rules"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	name: Mapped[str] = mapped_column(String(255), nullable=False)
	description: Mapped[str | None] = mapped_column(Text)
	source_department: Mapped[str] = mapped_column(String(255), nullable=False)
	target_department: Mapped[str] = mapped_column(String(255), nullable=False)

	# Matching conditions (JSON)
	# Example: {"title": "contract", "keywords": ["supply"], "status": "verified"}
	conditions: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
	priority: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
	is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

	created_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), default=utc_now, nullable=False
	)
	created_by: Mapped[str | None] = mapped_column(String(255))
	updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

	__table_args__ = (
		CheckConstraint("priority BETWEEN 0 AND 10", name="routing_rule_priority_range"),
		CheckConstraint(
			"source_department <> target_department",
			name="routing_rule_distinct_departments",
		),
		Index("idx_routing_rules_active", "source_department", "is_active", "priority"),
	)


class DocumentRoutingORM(Base):
	"""One delivery attempt of a letter."""
	__tablename__ = "document_routings"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
	letter_id: Mapped[int] = mapped_column(
		ForeignKey("letters.id", ondelete="CASCADE"), nullable=False
	)
	from_department: Mapped[str] = mapped_column(String(255), nullable=False)
	to_department: Mapped[str] = mapped_column(String(255), nullable=False)
	# historical metadata only; later rule edits do not touch the routing
	routing_rule_id: Mapped[int | None] = mapped_column(
		ForeignKey("routing_rules.id", ondelete="SET NULL")
	)
	status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

	routed_at: Mapped[datetime] = mapped_column(
		DateTime(timezone=True), default=utc_now, nullable=False
	)
	delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	notes: Mapped[str | None] = mapped_column(Text)
	routed_by: Mapped[str] = mapped_column(String(255), nullable=False)

	__table_args__ = (
		CheckConstraint(
			"from_department <> to_department",
			name="document_routing_distinct_departments",
		),
		Index("idx_document_routings_letter", "letter_id", "status"),
	)
