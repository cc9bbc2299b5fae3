# (c) Copyright Datacraft, 2026
"""Routing rules and document routings database API."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.exceptions import NotFound
from registrar.core.features.routing.schema import DocumentRouting, RoutingRule

from .orm import DocumentRoutingORM, RoutingRuleORM


def _rule_values(rule: RoutingRule) -> dict:
	values = rule.model_dump(exclude={"id", "conditions"})
	values["conditions"] = rule.conditions.model_dump(mode="json", exclude_none=True)
	return values


def _routing_values(routing: DocumentRouting) -> dict:
	values = routing.model_dump(exclude={"id"})
	values["status"] = routing.status.value
	return values


class SqlRuleRepository:
	"""Routing rule repository backed by an AsyncSession."""

	def __init__(self, session: AsyncSession):
		self.session = session

	async def load(self, rule_id: int) -> RoutingRule:
		row = await self.session.get(RoutingRuleORM, rule_id)
		if row is None:
			raise NotFound(f"Routing rule not found: {rule_id}")
		return RoutingRule.model_validate(row)

	async def save(self, rule: RoutingRule) -> RoutingRule:
		if rule.id is None:
			row = RoutingRuleORM(**_rule_values(rule))
			self.session.add(row)
		else:
			row = await self.session.get(RoutingRuleORM, rule.id)
			if row is None:
				raise NotFound(f"Routing rule not found: {rule.id}")
			for field, value in _rule_values(rule).items():
				setattr(row, field, value)

		await self.session.flush()
		return RoutingRule.model_validate(row)

	async def find_active_by_source_department(
		self,
		department: str,
	) -> list[RoutingRule]:
		stmt = (
			select(RoutingRuleORM)
			.where(
				RoutingRuleORM.source_department == department,
				RoutingRuleORM.is_active == True,
			)
			.order_by(RoutingRuleORM.priority.desc(), RoutingRuleORM.id.asc())
		)
		result = await self.session.execute(stmt)
		return [RoutingRule.model_validate(r) for r in result.scalars().all()]

	async def list_rules(
		self,
		department: str | None = None,
		include_inactive: bool = False,
	) -> list[RoutingRule]:
		stmt = select(RoutingRuleORM)
		if department:
			stmt = stmt.where(RoutingRuleORM.source_department == department)
		if not include_inactive:
			stmt = stmt.where(RoutingRuleORM.is_active == True)

		stmt = stmt.order_by(
			RoutingRuleORM.source_department,
			RoutingRuleORM.priority.desc(),
			RoutingRuleORM.id,
		)
		result = await self.session.execute(stmt)
		return [RoutingRule.model_validate(r) for r in result.scalars().all()]


class SqlRoutingRepository:
	"""Document routing repository backed by an AsyncSession."""

	def __init__(self, session: AsyncSession):
		self.session = session

	async def load(self, routing_id: int, for_update: bool = False) -> DocumentRouting:
		stmt = select(DocumentRoutingORM).where(DocumentRoutingORM.id == routing_id)
		if for_update:
			stmt = stmt.with_for_update()
		result = await self.session.execute(stmt)
		row = result.scalar_one_or_none()
		if row is None:
			raise NotFound(f"Document routing not found: {routing_id}")
		return DocumentRouting.model_validate(row)

	async def save(self, routing: DocumentRouting) -> DocumentRouting:
		if routing.id is None:
			row = DocumentRoutingORM(**_routing_values(routing))
			self.session.add(row)
		else:
			row = await self.session.get(DocumentRoutingORM, routing.id)
			if row is None:
				raise NotFound(f"Document routing not found: {routing.id}")
			for field, value in _routing_values(routing).items():
				setattr(row, field, value)

		await self.session.flush()
		return DocumentRouting.model_validate(row)

	async def list_for_letter(self, letter_id: int) -> list[DocumentRouting]:
		stmt = (
			select(DocumentRoutingORM)
			.where(DocumentRoutingORM.letter_id == letter_id)
			.order_by(DocumentRoutingORM.routed_at, DocumentRoutingORM.id)
		)
		result = await self.session.execute(stmt)
		return [DocumentRouting.model_validate(r) for r in result.scalars().all()]
