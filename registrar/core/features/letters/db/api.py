# (c) Copyright Datacraft, 2026
"""Letters database API."""
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.exceptions import ConflictError, NotFound
from registrar.core.features.letters.schema import Letter
from registrar.core.features.routing.db.orm import DocumentRoutingORM
from registrar.core.features.routing.schema import (
	ACTIVE_ROUTING_STATUSES,
	DocumentRouting,
)

from .orm import LetterORM


def _row_values(letter: Letter) -> dict:
	values = letter.model_dump(exclude={"id"})
	values["status"] = letter.status.value
	return values


class SqlLetterRepository:
	"""Letter repository backed by an AsyncSession."""

	def __init__(self, session: AsyncSession):
		self.session = session

	async def load(self, letter_id: int, for_update: bool = False) -> Letter:
		stmt = select(LetterORM).where(LetterORM.id == letter_id)
		if for_update:
			stmt = stmt.with_for_update()
		result = await self.session.execute(stmt)
		row = result.scalar_one_or_none()
		if row is None:
			raise NotFound(f"Letter not found: {letter_id}")
		return Letter.model_validate(row)

	async def save(self, letter: Letter) -> Letter:
		if letter.id is None:
			row = LetterORM(**_row_values(letter))
			self.session.add(row)
		else:
			row = await self.session.get(LetterORM, letter.id)
			if row is None:
				raise NotFound(f"Letter not found: {letter.id}")
			for field, value in _row_values(letter).items():
				setattr(row, field, value)

		try:
			await self.session.flush()
		except IntegrityError as e:
			raise ConflictError(
				f"Letter reference already in use: {letter.reference}"
			) from e

		return Letter.model_validate(row)

	async def find_by_reference(self, reference: str) -> Letter | None:
		stmt = select(LetterORM).where(LetterORM.reference == reference)
		result = await self.session.execute(stmt)
		row = result.scalar_one_or_none()
		return Letter.model_validate(row) if row else None

	async def find_active_routing_for(self, letter_id: int) -> DocumentRouting | None:
		stmt = (
			select(DocumentRoutingORM)
			.where(
				DocumentRoutingORM.letter_id == letter_id,
				DocumentRoutingORM.status.in_([s.value for s in ACTIVE_ROUTING_STATUSES]),
			)
			.order_by(DocumentRoutingORM.id)
			.limit(1)
		)
		result = await self.session.execute(stmt)
		row = result.scalar_one_or_none()
		return DocumentRouting.model_validate(row) if row else None
