# (c) Copyright Datacraft, 2026
"""
Audit ledger contract.

Every public mutating operation finishes with exactly one append through
the unit of work's audit sink, inside the same transaction as the state
write it describes. An append that fails raises and aborts the transition.
"""
import logging
from typing import Any

from registrar.core.config import Settings
from registrar.core.exceptions import InvalidTransition
from registrar.core.utils.tz import utc_now

from .schema import AuditLogEntry
from .security import calculate_entry_checksum

logger = logging.getLogger(__name__)

ENTITY_LETTER = "letter"
ENTITY_ROUTING = "routing"
ENTITY_RULE = "routing_rule"

LETTER_SUBMITTED = "letter.submitted"
LETTER_VERIFIED = "letter.verified"
LETTER_REJECTED = "letter.rejected"
ROUTING_CREATED = "routing.created"
ROUTING_UNMATCHED = "routing.unmatched"
ROUTING_ADVANCED = "routing.advanced"
ROUTING_REJECTED = "routing.rejected"
RULE_CREATED = "rule.created"
RULE_UPDATED = "rule.updated"
RULE_DISABLED = "rule.disabled"
RULE_ENABLED = "rule.enabled"

TRANSITION_DENIED_SUFFIX = "transition_denied"


def new_entry(
	action: str,
	entity_type: str,
	entity_id: int | str,
	actor_id: str,
	details: dict[str, Any] | None = None,
) -> AuditLogEntry:
	"""Build a checksummed entry stamped with the current UTC time."""
	entry = AuditLogEntry(
		action=action,
		entity_type=entity_type,
		entity_id=str(entity_id),
		actor_id=actor_id,
		details=details or {},
		timestamp=utc_now(),
	)
	return entry.model_copy(update={"checksum": calculate_entry_checksum(entry)})


def denied_action(entity_type: str) -> str:
	prefix = "rule" if entity_type == ENTITY_RULE else entity_type
	return f"{prefix}.{TRANSITION_DENIED_SUFFIX}"


async def record_denied_transition(
	uow_factory,
	actor_id: str,
	exc: InvalidTransition,
) -> None:
	"""Append a diagnostic entry for a refused transition in its own transaction."""
	entry = new_entry(
		denied_action(exc.entity_type),
		exc.entity_type,
		exc.entity_id,
		actor_id,
		{"operation": exc.operation, "status": exc.current_status},
	)
	async with uow_factory() as uow:
		await uow.audit.append(entry)
		await uow.commit()
	logger.info(f"Recorded {entry.action} for {exc.entity_type} {exc.entity_id}")


async def transition_denied(
	uow_factory,
	settings: Settings,
	actor_id: str,
	exc: InvalidTransition,
) -> None:
	"""Log a refused transition; record it too when the settings ask for it."""
	logger.warning(f"Actor {actor_id}: {exc}")
	if settings.audit_denied_transitions:
		await record_denied_transition(uow_factory, actor_id, exc)
