# (c) Copyright Datacraft, 2026
"""Audit log database API."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.features.audit.schema import AuditLogEntry

from .orm import AuditLogORM


class SqlAuditSink:
	"""Appends audit entries in the session's transaction."""

	def __init__(self, session: AsyncSession):
		self.session = session

	async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
		row = AuditLogORM(**entry.model_dump(exclude={"id"}))
		self.session.add(row)
		await self.session.flush()
		return AuditLogEntry.model_validate(row)

	async def list_for_entity(
		self,
		entity_type: str,
		entity_id: str,
	) -> list[AuditLogEntry]:
		stmt = (
			select(AuditLogORM)
			.where(
				AuditLogORM.entity_type == entity_type,
				AuditLogORM.entity_id == str(entity_id),
			)
			.order_by(AuditLogORM.timestamp.asc(), AuditLogORM.id.asc())
		)
		result = await self.session.execute(stmt)
		return [AuditLogEntry.model_validate(r) for r in result.scalars().all()]

	async def list_all(self) -> list[AuditLogEntry]:
		stmt = select(AuditLogORM).order_by(AuditLogORM.timestamp.asc(), AuditLogORM.id.asc())
		result = await self.session.execute(stmt)
		return [AuditLogEntry.model_validate(r) for r in result.scalars().all()]
