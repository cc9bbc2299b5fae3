# (c) Copyright Datacraft, 2026
"""Audit trail API endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from registrar.core.features.auth.dependencies import CurrentActor
from registrar.core.services import Registrar, get_registrar
from .schema import AuditLogEntry, AuditVerification

router = APIRouter(
	prefix="/audit-logs",
	tags=["audit-logs"],
)

logger = logging.getLogger(__name__)


@router.get("/verify")
async def verify_audit_log(
	actor: CurrentActor,
	registrar: Annotated[Registrar, Depends(get_registrar)],
) -> AuditVerification:
	"""Recompute the checksum of every audit entry."""
	result = await registrar.queries.verify_audit_log()
	if not result.valid:
		logger.error(f"Audit verification requested by {actor.actor_id} failed: {result.error}")
	return result


@router.get("/{entity_type}/{entity_id}")
async def get_audit_trail(
	entity_type: str,
	entity_id: str,
	actor: CurrentActor,
	registrar: Annotated[Registrar, Depends(get_registrar)],
) -> list[AuditLogEntry]:
	"""Audit entries of one entity in the order they were recorded."""
	return await registrar.queries.get_audit_trail(entity_type, entity_id)
