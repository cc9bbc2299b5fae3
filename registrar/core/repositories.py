# (c) Copyright Datacraft, 2026
"""
Repository interfaces consumed by the engine.

Two implementations exist: the SQLAlchemy repositories under each feature's
`db/api.py` (grouped by `registrar.core.db.uow.SqlUnitOfWork`) and the
in-process store in `registrar.core.db.memory`.
"""
from __future__ import annotations

from typing import Callable, Protocol

from registrar.core.features.audit.schema import AuditLogEntry
from registrar.core.features.letters.schema import Letter
from registrar.core.features.routing.schema import DocumentRouting, RoutingRule


class LetterRepository(Protocol):

	async def load(self, letter_id: int, for_update: bool = False) -> Letter:
		"""Raises NotFound for an unknown id."""

	async def save(self, letter: Letter) -> Letter:
		"""Insert (id is None) or update; returns the stored letter."""

	async def find_by_reference(self, reference: str) -> Letter | None:
		...

	async def find_active_routing_for(self, letter_id: int) -> DocumentRouting | None:
		"""The pending or in-transit routing of the letter, if any."""


class RuleRepository(Protocol):

	async def load(self, rule_id: int) -> RoutingRule:
		...

	async def save(self, rule: RoutingRule) -> RoutingRule:
		...

	async def find_active_by_source_department(
		self,
		department: str,
	) -> list[RoutingRule]:
		"""Active rules of a department ordered by priority desc, id asc."""

	async def list_rules(
		self,
		department: str | None = None,
		include_inactive: bool = False,
	) -> list[RoutingRule]:
		...


class RoutingRepository(Protocol):

	async def load(self, routing_id: int, for_update: bool = False) -> DocumentRouting:
		...

	async def save(self, routing: DocumentRouting) -> DocumentRouting:
		...

	async def list_for_letter(self, letter_id: int) -> list[DocumentRouting]:
		"""All routings of a letter ordered by routed_at, id."""


class AuditSink(Protocol):

	async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
		"""Never fails silently: a failed append raises."""

	async def list_for_entity(
		self,
		entity_type: str,
		entity_id: str,
	) -> list[AuditLogEntry]:
		"""Entries of one entity ordered by timestamp, insertion sequence."""

	async def list_all(self) -> list[AuditLogEntry]:
		...


class UnitOfWork(Protocol):
	"""
	One transaction over all repositories.

	Leaving the context without `commit()` discards every write, and so does
	leaving it with an exception.
	"""
	letters: LetterRepository
	rules: RuleRepository
	routings: RoutingRepository
	audit: AuditSink

	async def __aenter__(self) -> UnitOfWork:
		...

	async def __aexit__(self, exc_type, exc, tb) -> None:
		...

	async def commit(self) -> None:
		...

	async def rollback(self) -> None:
		...


UnitOfWorkFactory = Callable[[], UnitOfWork]
