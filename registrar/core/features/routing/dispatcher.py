# (c) Copyright Datacraft, 2026
"""Routing dispatcher: turns a verified letter into a delivery."""
import logging

from registrar.core.config import Settings
from registrar.core.exceptions import ConflictError, InvalidTransition, ValidationError
from registrar.core.features.audit import ledger
from registrar.core.features.auth import ActorContext, RolePolicy
from registrar.core.features.letters.schema import Letter, LetterStatus
from registrar.core.locks import KeyedLock
from registrar.core.repositories import UnitOfWork, UnitOfWorkFactory
from registrar.core.utils.tz import utc_now

from .evaluator import select_rule
from .schema import DocumentRouting, NoRuleMatched, RoutingRule

logger = logging.getLogger(__name__)


class RoutingDispatcher:
	"""
	Creates routing records for verified letters.

	`dispatch` expects the caller to hold the letter's lock; `route` and
	`route_manually` take it themselves.
	"""

	def __init__(
		self,
		uow_factory: UnitOfWorkFactory,
		policy: RolePolicy,
		locks: KeyedLock,
		settings: Settings,
	):
		self.uow_factory = uow_factory
		self.policy = policy
		self.locks = locks
		self.settings = settings

	async def _load_routable(self, uow: UnitOfWork, letter_id: int, operation: str) -> Letter:
		letter = await uow.letters.load(letter_id, for_update=True)
		if letter.status != LetterStatus.VERIFIED:
			raise InvalidTransition(
				ledger.ENTITY_LETTER, letter.id, letter.status.value, operation
			)

		active = await uow.letters.find_active_routing_for(letter.id)
		if active is not None:
			raise ConflictError(
				f"Letter {letter.id} already has an active routing "
				f"({active.id}, {active.status.value})"
			)
		return letter

	async def _create(
		self,
		uow: UnitOfWork,
		letter: Letter,
		to_department: str,
		actor_id: str,
		rule: RoutingRule | None = None,
		notes: str | None = None,
	) -> DocumentRouting:
		routing = await uow.routings.save(DocumentRouting(
			letter_id=letter.id,
			from_department=letter.department,
			to_department=to_department,
			routing_rule_id=rule.id if rule else None,
			routed_at=utc_now(),
			notes=notes,
			routed_by=actor_id,
		))
		await uow.audit.append(ledger.new_entry(
			ledger.ROUTING_CREATED,
			ledger.ENTITY_ROUTING,
			routing.id,
			actor_id,
			{
				"letter_id": letter.id,
				"from_department": routing.from_department,
				"to_department": routing.to_department,
				"routing_rule_id": routing.routing_rule_id,
				"manual": rule is None,
			},
		))
		return routing

	async def dispatch(
		self,
		letter_id: int,
		actor_id: str,
	) -> DocumentRouting | NoRuleMatched:
		"""Evaluate the rules of the letter's department and create the routing."""
		async with self.uow_factory() as uow:
			letter = await self._load_routable(uow, letter_id, "route")

			# snapshot: later rule edits do not affect this decision
			rules = list(await uow.rules.find_active_by_source_department(letter.department))
			rule = select_rule(letter, letter.department, rules)

			if rule is None:
				await uow.audit.append(ledger.new_entry(
					ledger.ROUTING_UNMATCHED,
					ledger.ENTITY_LETTER,
					letter.id,
					actor_id,
					{"source_department": letter.department, "rules_evaluated": len(rules)},
				))
				await uow.commit()
				logger.warning(
					f"No routing rule of {letter.department} matched letter {letter.id} "
					f"({len(rules)} evaluated)"
				)
				return NoRuleMatched(
					letter_id=letter.id,
					source_department=letter.department,
					rules_evaluated=len(rules),
				)

			routing = await self._create(uow, letter, rule.target_department, actor_id, rule=rule)
			await uow.commit()

		logger.info(
			f"Letter {letter.id} routed {routing.from_department} -> "
			f"{routing.to_department} by rule {rule.id}"
		)
		return routing

	async def route(
		self,
		actor: ActorContext,
		letter_id: int,
	) -> DocumentRouting | NoRuleMatched:
		"""Re-run rule routing for a verified letter without an active routing."""
		async with self.locks.hold(letter_id):
			async with self.uow_factory() as uow:
				letter = await uow.letters.load(letter_id)
			self.policy.require_router(actor, letter.department)
			try:
				return await self.dispatch(letter_id, actor.actor_id)
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

	async def route_manually(
		self,
		actor: ActorContext,
		letter_id: int,
		target_department: str,
		notes: str | None = None,
	) -> DocumentRouting:
		"""Route a verified letter to a chosen department, bypassing the rules."""
		target_department = (target_department or "").strip()
		if not target_department:
			raise ValidationError("Target department is required")

		async with self.locks.hold(letter_id):
			try:
				async with self.uow_factory() as uow:
					letter = await uow.letters.load(letter_id, for_update=True)
					self.policy.require_router(actor, letter.department)
					if target_department == letter.department:
						raise ValidationError(
							f"Letter already belongs to {target_department}"
						)

					letter = await self._load_routable(uow, letter_id, "route")
					routing = await self._create(
						uow, letter, target_department, actor.actor_id, notes=notes
					)
					await uow.commit()
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

		logger.info(
			f"Letter {letter_id} manually routed to {target_department} by {actor.actor_id}"
		)
		return routing
