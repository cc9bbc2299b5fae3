# (c) Copyright Datacraft, 2026
"""
In-process store and unit of work.

Writes are staged per unit of work and applied to the store in `commit()`,
which contains no await point and so is atomic with respect to other tasks
on the event loop. Used for tests and embedded, single-process deployments.
"""
import itertools
import logging
from collections import defaultdict

from registrar.core.exceptions import ConflictError, NotFound
from registrar.core.features.audit.schema import AuditLogEntry
from registrar.core.features.letters.schema import Letter
from registrar.core.features.routing.schema import DocumentRouting, RoutingRule

logger = logging.getLogger(__name__)


class MemoryStore:
	"""Committed state shared by all memory units of work."""

	def __init__(self):
		self.letters: dict[int, Letter] = {}
		self.rules: dict[int, RoutingRule] = {}
		self.routings: dict[int, DocumentRouting] = {}
		self.audit_log: list[AuditLogEntry] = []
		self._sequences = defaultdict(lambda: itertools.count(1))

	def next_id(self, table: str) -> int:
		return next(self._sequences[table])

	def uow_factory(self):
		def _factory() -> "MemoryUnitOfWork":
			return MemoryUnitOfWork(self)

		return _factory


class _Staged:
	"""Writes of one unit of work not yet committed."""

	def __init__(self):
		self.letters: dict[int, Letter] = {}
		self.rules: dict[int, RoutingRule] = {}
		self.routings: dict[int, DocumentRouting] = {}
		self.audit: list[AuditLogEntry] = []

	def clear(self) -> None:
		self.letters.clear()
		self.rules.clear()
		self.routings.clear()
		self.audit.clear()


class MemoryLetterRepository:

	def __init__(self, store: MemoryStore, staged: _Staged):
		self.store = store
		self.staged = staged

	def _view(self) -> dict[int, Letter]:
		return {**self.store.letters, **self.staged.letters}

	async def load(self, letter_id: int, for_update: bool = False) -> Letter:
		letter = self._view().get(letter_id)
		if letter is None:
			raise NotFound(f"Letter not found: {letter_id}")
		return letter.model_copy(deep=True)

	async def save(self, letter: Letter) -> Letter:
		if letter.id is None:
			letter = letter.model_copy(update={"id": self.store.next_id("letters")})
		elif letter.id not in self._view():
			raise NotFound(f"Letter not found: {letter.id}")

		for other in self._view().values():
			if other.reference == letter.reference and other.id != letter.id:
				raise ConflictError(f"Letter reference already in use: {letter.reference}")

		self.staged.letters[letter.id] = letter.model_copy(deep=True)
		return letter.model_copy(deep=True)

	async def find_by_reference(self, reference: str) -> Letter | None:
		for letter in self._view().values():
			if letter.reference == reference:
				return letter.model_copy(deep=True)
		return None

	async def find_active_routing_for(self, letter_id: int) -> DocumentRouting | None:
		routings = {**self.store.routings, **self.staged.routings}
		for routing_id in sorted(routings):
			routing = routings[routing_id]
			if routing.letter_id == letter_id and routing.is_active:
				return routing.model_copy(deep=True)
		return None


class MemoryRuleRepository:

	def __init__(self, store: MemoryStore, staged: _Staged):
		self.store = store
		self.staged = staged

	def _view(self) -> dict[int, RoutingRule]:
		return {**self.store.rules, **self.staged.rules}

	async def load(self, rule_id: int) -> RoutingRule:
		rule = self._view().get(rule_id)
		if rule is None:
			raise NotFound(f"Routing rule not found: {rule_id}")
		return rule.model_copy(deep=True)

	async def save(self, rule: RoutingRule) -> RoutingRule:
		if rule.id is None:
			rule = rule.model_copy(update={"id": self.store.next_id("routing_rules")})
		elif rule.id not in self._view():
			raise NotFound(f"Routing rule not found: {rule.id}")

		self.staged.rules[rule.id] = rule.model_copy(deep=True)
		return rule.model_copy(deep=True)

	async def find_active_by_source_department(
		self,
		department: str,
	) -> list[RoutingRule]:
		rules = [
			r for r in self._view().values()
			if r.source_department == department and r.is_active
		]
		rules.sort(key=lambda r: (-r.priority, r.id))
		return [r.model_copy(deep=True) for r in rules]

	async def list_rules(
		self,
		department: str | None = None,
		include_inactive: bool = False,
	) -> list[RoutingRule]:
		rules = [
			r for r in self._view().values()
			if (not department or r.source_department == department)
			and (include_inactive or r.is_active)
		]
		rules.sort(key=lambda r: (r.source_department, -r.priority, r.id))
		return [r.model_copy(deep=True) for r in rules]


class MemoryRoutingRepository:

	def __init__(self, store: MemoryStore, staged: _Staged):
		self.store = store
		self.staged = staged

	def _view(self) -> dict[int, DocumentRouting]:
		return {**self.store.routings, **self.staged.routings}

	async def load(self, routing_id: int, for_update: bool = False) -> DocumentRouting:
		routing = self._view().get(routing_id)
		if routing is None:
			raise NotFound(f"Document routing not found: {routing_id}")
		return routing.model_copy(deep=True)

	async def save(self, routing: DocumentRouting) -> DocumentRouting:
		if routing.id is None:
			routing = routing.model_copy(
				update={"id": self.store.next_id("document_routings")}
			)
		elif routing.id not in self._view():
			raise NotFound(f"Document routing not found: {routing.id}")

		self.staged.routings[routing.id] = routing.model_copy(deep=True)
		return routing.model_copy(deep=True)

	async def list_for_letter(self, letter_id: int) -> list[DocumentRouting]:
		routings = [r for r in self._view().values() if r.letter_id == letter_id]
		routings.sort(key=lambda r: (r.routed_at, r.id))
		return [r.model_copy(deep=True) for r in routings]


class MemoryAuditSink:

	def __init__(self, store: MemoryStore, staged: _Staged):
		self.store = store
		self.staged = staged

	async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
		entry = entry.model_copy(update={"id": self.store.next_id("audit_logs")})
		self.staged.audit.append(entry)
		return entry

	async def list_for_entity(
		self,
		entity_type: str,
		entity_id: str,
	) -> list[AuditLogEntry]:
		entries = [
			e for e in self.store.audit_log + self.staged.audit
			if e.entity_type == entity_type and e.entity_id == str(entity_id)
		]
		return sorted(entries, key=lambda e: (e.timestamp, e.id))

	async def list_all(self) -> list[AuditLogEntry]:
		return sorted(
			self.store.audit_log + self.staged.audit,
			key=lambda e: (e.timestamp, e.id),
		)


class MemoryUnitOfWork:

	def __init__(self, store: MemoryStore):
		self.store = store
		self._staged = _Staged()
		self.letters = MemoryLetterRepository(store, self._staged)
		self.rules = MemoryRuleRepository(store, self._staged)
		self.routings = MemoryRoutingRepository(store, self._staged)
		self.audit = MemoryAuditSink(store, self._staged)

	async def __aenter__(self) -> "MemoryUnitOfWork":
		self._staged.clear()
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.rollback()

	async def commit(self) -> None:
		staged = self._staged
		# staged references checked again: another unit may have committed since
		for letter in staged.letters.values():
			for other in self.store.letters.values():
				if other.reference == letter.reference and other.id != letter.id:
					raise ConflictError(
						f"Letter reference already in use: {letter.reference}"
					)

		self.store.letters.update(staged.letters)
		self.store.rules.update(staged.rules)
		self.store.routings.update(staged.routings)
		self.store.audit_log.extend(staged.audit)
		staged.clear()

	async def rollback(self) -> None:
		self._staged.clear()
