# (c) Copyright Datacraft, 2026
"""Document routing (delivery) state machine.

State Flow:
    pending -> in_transit -> delivered
    pending | in_transit -> rejected

Terminal States: delivered, rejected. `delivered_at` is set exactly on
entering `delivered`.
"""
import logging
from datetime import datetime

from registrar.core.config import Settings
from registrar.core.exceptions import InvalidTransition, ValidationError
from registrar.core.features.audit import ledger
from registrar.core.features.auth import ActorContext, RolePolicy
from registrar.core.locks import KeyedLock
from registrar.core.repositories import UnitOfWorkFactory
from registrar.core.utils.tz import utc_now

from .schema import DocumentRouting, RoutingStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
	RoutingStatus.PENDING: [RoutingStatus.IN_TRANSIT, RoutingStatus.REJECTED],
	RoutingStatus.IN_TRANSIT: [RoutingStatus.DELIVERED, RoutingStatus.REJECTED],
	RoutingStatus.DELIVERED: [],
	RoutingStatus.REJECTED: [],
}

# next state reached by `advance`
ADVANCE_TO = {
	RoutingStatus.PENDING: RoutingStatus.IN_TRANSIT,
	RoutingStatus.IN_TRANSIT: RoutingStatus.DELIVERED,
}


def can_transition(current: RoutingStatus, new: RoutingStatus) -> bool:
	return new in ALLOWED_TRANSITIONS.get(current, [])


def get_allowed_transitions(status: RoutingStatus) -> list[RoutingStatus]:
	return ALLOWED_TRANSITIONS.get(status, [])


def apply_advance(
	routing: DocumentRouting,
	notes: str | None,
	now: datetime,
	expected_status: RoutingStatus,
) -> DocumentRouting:
	"""
	Move the routing one step forward from `expected_status`.

	A caller that saw `pending` never pushes an `in_transit` routing to
	`delivered`.
	"""
	new_status = ADVANCE_TO.get(routing.status)
	if new_status is None or routing.status != expected_status:
		raise InvalidTransition(
			ledger.ENTITY_ROUTING, routing.id, routing.status.value, "advance"
		)

	update = {"status": new_status}
	if new_status == RoutingStatus.DELIVERED:
		update["delivered_at"] = now
	if notes and notes.strip():
		update["notes"] = notes.strip()
	return routing.model_copy(update=update)


def apply_rejection(routing: DocumentRouting, notes: str) -> DocumentRouting:
	if not can_transition(routing.status, RoutingStatus.REJECTED):
		raise InvalidTransition(
			ledger.ENTITY_ROUTING, routing.id, routing.status.value, "reject"
		)
	return routing.model_copy(update={"status": RoutingStatus.REJECTED, "notes": notes})


class DeliveryService:
	"""Moves routing records along the delivery lifecycle."""

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

	async def _letter_id_of(self, routing_id: int) -> int:
		# routings never change letter, so this read needs no lock
		async with self.uow_factory() as uow:
			routing = await uow.routings.load(routing_id)
		return routing.letter_id

	async def advance(
		self,
		actor: ActorContext,
		routing_id: int,
		notes: str | None = None,
		*,
		expected_status: RoutingStatus,
	) -> DocumentRouting:
		"""pending -> in_transit, in_transit -> delivered.

		`expected_status` is the status the caller last saw. A repeated
		submission finds the routing already moved and fails with
		InvalidTransition instead of advancing twice.
		"""
		letter_id = await self._letter_id_of(routing_id)

		async with self.locks.hold(letter_id):
			try:
				async with self.uow_factory() as uow:
					routing = await uow.routings.load(routing_id, for_update=True)
					self.policy.require_routing_handler(actor, routing)
					from_status = routing.status

					routing = apply_advance(routing, notes, utc_now(), expected_status)
					routing = await uow.routings.save(routing)
					await uow.audit.append(ledger.new_entry(
						ledger.ROUTING_ADVANCED,
						ledger.ENTITY_ROUTING,
						routing.id,
						actor.actor_id,
						{
							"letter_id": routing.letter_id,
							"from_status": from_status.value,
							"to_status": routing.status.value,
						},
					))
					await uow.commit()
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

		logger.info(
			f"Routing {routing_id} advanced {from_status.value} -> "
			f"{routing.status.value} by {actor.actor_id}"
		)
		return routing

	async def reject(
		self,
		actor: ActorContext,
		routing_id: int,
		notes: str,
	) -> DocumentRouting:
		"""Reject a pending or in-transit delivery; notes are mandatory."""
		notes = (notes or "").strip()
		if not notes:
			raise ValidationError("Notes explaining the rejection are required")

		letter_id = await self._letter_id_of(routing_id)

		async with self.locks.hold(letter_id):
			try:
				async with self.uow_factory() as uow:
					routing = await uow.routings.load(routing_id, for_update=True)
					self.policy.require_routing_handler(actor, routing)
					from_status = routing.status

					routing = apply_rejection(routing, notes)
					routing = await uow.routings.save(routing)
					await uow.audit.append(ledger.new_entry(
						ledger.ROUTING_REJECTED,
						ledger.ENTITY_ROUTING,
						routing.id,
						actor.actor_id,
						{
							"letter_id": routing.letter_id,
							"from_status": from_status.value,
							"notes": notes,
						},
					))
					await uow.commit()
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

		logger.info(f"Routing {routing_id} rejected by {actor.actor_id}")
		return routing
