# (c) Copyright Datacraft, 2026
"""Routing rules and delivery API endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from registrar.core.features.auth.dependencies import CurrentActor
from registrar.core.services import Registrar, get_registrar
from . import schema

router = APIRouter(
	prefix="/routing",
	tags=["routing"],
)

logger = logging.getLogger(__name__)

RegistrarDep = Annotated[Registrar, Depends(get_registrar)]


@router.get("/rules")
async def list_routing_rules(
	actor: CurrentActor,
	registrar: RegistrarDep,
	department: str | None = None,
	include_inactive: bool = False,
) -> list[schema.RoutingRule]:
	"""List routing rules, best first within each department."""
	return await registrar.rules.list_rules(department, include_inactive)


@router.post("/rules", status_code=status.HTTP_201_CREATED)
async def create_routing_rule(
	rule: schema.RuleCreate,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.RoutingRule:
	"""Create a routing rule."""
	return await registrar.rules.create_rule(actor, rule)


@router.patch("/rules/{rule_id}")
async def update_routing_rule(
	rule_id: int,
	updates: schema.RuleUpdate,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.RoutingRule:
	"""Update a routing rule."""
	return await registrar.rules.update_rule(actor, rule_id, updates)


@router.post("/rules/{rule_id}/disable")
async def disable_routing_rule(
	rule_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.RoutingRule:
	"""Disable a routing rule. Rules are never deleted."""
	return await registrar.rules.set_rule_active(actor, rule_id, False)


@router.post("/rules/{rule_id}/enable")
async def enable_routing_rule(
	rule_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.RoutingRule:
	"""Re-enable a disabled routing rule."""
	return await registrar.rules.set_rule_active(actor, rule_id, True)


@router.post("/test/{letter_id}")
async def test_routing_rules(
	letter_id: int,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.TestRuleResponse:
	"""Show which rule would route the letter, without routing it."""
	rule = await registrar.rules.test_rules(letter_id)
	return schema.TestRuleResponse(matched=rule is not None, matching_rule=rule)


@router.post("/{routing_id}/advance")
async def advance_routing(
	routing_id: int,
	request: schema.AdvanceRequest,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.DocumentRouting:
	"""Move a delivery to its next state (in transit, then delivered)."""
	return await registrar.delivery.advance(
		actor,
		routing_id,
		notes=request.notes,
		expected_status=request.expected_status,
	)


@router.post("/{routing_id}/reject")
async def reject_routing(
	routing_id: int,
	request: schema.RejectRoutingRequest,
	actor: CurrentActor,
	registrar: RegistrarDep,
) -> schema.DocumentRouting:
	"""Reject a delivery that has not been completed."""
	return await registrar.delivery.reject(actor, routing_id, request.notes)
