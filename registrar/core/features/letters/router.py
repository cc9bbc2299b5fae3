# (c) Copyright Datacraft, 2026
"""Letter verification API endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from registrar.core.features.auth.dependencies import CurrentActor
from registrar.core.features.routing.schema import (
	DocumentRouting,
	ManualRouteRequest,
	RouteResponse,
)
from registrar.core.services import Registrar, get_registrar
from . import schema

router = APIRouter(
	prefix="/letters",
	tags=["letters"],
)

logger = logging.getLogger(__name__)

RegistrarDep = Annotated[Registrar, Depends(get_registrar)]


def _info(letter) -> schema.LetterInfo:
	return schema.LetterInfo.model_validate(letter.model_dump())


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_letter(
	data: schema.LetterSubmit,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.LetterSubmitted:
	"""Submit a letter for verification."""
	letter = await registrar.verification.submit(actor, data)
	return schema.LetterSubmitted(
		letter=_info(letter),
		verification_code=letter.verification_code,
	)


@router.get("/{letter_id}/status")
async def get_letter_status(
	letter_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.LetterStatusInfo:
	"""Current verification status and active routing of a letter."""
	return await registrar.queries.get_letter_status(letter_id)


@router.post("/{letter_id}/verify")
async def verify_letter(
	letter_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
	request: schema.VerifyRequest | None = None,
) -> schema.VerificationResponse:
	"""Verify a pending letter and route it by the department's rules."""
	result = await registrar.verification.verify(
		actor,
		letter_id,
		passcode=request.passcode if request else None,
	)

	if result.routed:
		return schema.VerificationResponse(
			letter=_info(result.letter),
			routed=True,
			routing_id=result.routing.id,
			to_department=result.routing.to_department,
			message=f"Letter verified and routed to {result.routing.to_department}",
		)

	return schema.VerificationResponse(
		letter=_info(result.letter),
		routed=False,
		message="Letter verified; no routing rule matched",
	)


@router.post("/{letter_id}/reject")
async def reject_letter(
	letter_id: int,
	request: schema.RejectRequest,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.LetterInfo:
	"""Reject a pending letter."""
	letter = await registrar.verification.reject(actor, letter_id, request.reason)
	return _info(letter)


@router.post("/{letter_id}/route", status_code=status.HTTP_201_CREATED)
async def route_letter_manually(
	letter_id: int,
	request: ManualRouteRequest,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> DocumentRouting:
	"""Route a verified letter to a chosen department."""
	return await registrar.dispatcher.route_manually(
		actor,
		letter_id,
		request.target_department,
		notes=request.notes,
	)


@router.post("/{letter_id}/auto-route")
async def route_letter(
	letter_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> RouteResponse:
	"""Re-run rule routing for a verified, unrouted letter."""
	outcome = await registrar.dispatcher.route(actor, letter_id)
	if isinstance(outcome, DocumentRouting):
		return RouteResponse(
			matched=True,
			routing=outcome,
			message="Document routed successfully",
		)

	return RouteResponse(matched=False, message="No matching rule found")


@router.get("/{letter_id}/routings")
async def get_routing_history(
	letter_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> list[DocumentRouting]:
	"""All delivery attempts of a letter, oldest first."""
	return await registrar.queries.get_routing_history(letter_id)
