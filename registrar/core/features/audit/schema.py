# (c) Copyright Datacraft, 2026
"""Audit log schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AuditLogEntry(BaseModel):
	"""Immutable record of one state-changing action."""
	id: int | None = None
	action: str
	entity_type: str
	entity_id: str
	actor_id: str
	details: dict = Field(default_factory=dict)
	timestamp: datetime
	checksum: str | None = None

	model_config = ConfigDict(from_attributes=True, frozen=True)


class AuditVerification(BaseModel):
	"""Result of recomputing audit entry checksums."""
	valid: bool
	entries_checked: int
	error: str | None = None
