# (c) Copyright Datacraft, 2026
"""SQLAlchemy unit of work: one AsyncSession per engine operation."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from registrar.core.features.audit.db.api import SqlAuditSink
from registrar.core.features.letters.db.api import SqlLetterRepository
from registrar.core.features.routing.db.api import (
	SqlRoutingRepository,
	SqlRuleRepository,
)

logger = logging.getLogger(__name__)


class SqlUnitOfWork:

	def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
		self.session_factory = session_factory
		self.session: AsyncSession | None = None

	async def __aenter__(self) -> "SqlUnitOfWork":
		self.session = self.session_factory()
		self.letters = SqlLetterRepository(self.session)
		self.rules = SqlRuleRepository(self.session)
		self.routings = SqlRoutingRepository(self.session)
		self.audit = SqlAuditSink(self.session)
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		try:
			if exc_type is not None:
				logger.debug(f"Rolling back unit of work after {exc_type.__name__}")
			# no-op when commit() already ran
			await self.rollback()
		finally:
			await self.session.close()
			self.session = None

	async def commit(self) -> None:
		await self.session.commit()

	async def rollback(self) -> None:
		await self.session.rollback()


def sql_uow_factory(session_factory: async_sessionmaker[AsyncSession]):
	"""Return a zero-argument factory of SqlUnitOfWork bound to session_factory."""
	def _factory() -> SqlUnitOfWork:
		return SqlUnitOfWork(session_factory)

	return _factory
