# (c) Copyright Datacraft, 2026
"""Tests for the routing dispatcher."""
import asyncio

import pytest

from registrar.core.exceptions import (
    ConflictError,
    Forbidden,
    InvalidTransition,
    ValidationError,
)
from registrar.core.features.audit import ledger
from registrar.core.features.letters.schema import LetterStatus
from registrar.core.features.routing.schema import (
    DocumentRouting,
    NoRuleMatched,
    RoutingStatus,
    RuleUpdate,
)


@pytest.mark.asyncio
async def test_contract_letter_routed_to_legal(service, submit_letter, create_rule, clerk):
    rule = await create_rule(title="contract", priority=8)
    letter = await submit_letter(title="Supply Contract 2024")

    result = await service.verification.verify(clerk, letter.id)

    routing = result.routing
    assert isinstance(routing, DocumentRouting)
    assert routing.status == RoutingStatus.PENDING
    assert (routing.from_department, routing.to_department) == ("Registry", "Legal")
    assert routing.routing_rule_id == rule.id
    assert routing.routed_by == clerk.actor_id

    trail = await service.queries.get_audit_trail(ledger.ENTITY_ROUTING, routing.id)
    assert len(trail) == 1
    assert trail[0].action == ledger.ROUTING_CREATED
    assert trail[0].details["manual"] is False


@pytest.mark.asyncio
async def test_unmatched_letter_stays_verified(service, submit_letter, create_rule, clerk, store):
    await create_rule(title="invoice")
    letter = await submit_letter(title="Staff circular")

    result = await service.verification.verify(clerk, letter.id)

    assert result.routing == NoRuleMatched(
        letter_id=letter.id, source_department="Registry", rules_evaluated=1
    )
    assert store.letters[letter.id].status == LetterStatus.VERIFIED
    assert store.routings == {}

    trail = await service.queries.get_audit_trail(ledger.ENTITY_LETTER, letter.id)
    assert trail[-1].action == ledger.ROUTING_UNMATCHED
    assert trail[-1].details == {"source_department": "Registry", "rules_evaluated": 1}


@pytest.mark.asyncio
async def test_route_again_after_rule_added(service, submit_letter, create_rule, clerk):
    letter = await submit_letter(title="Staff circular")
    await service.verification.verify(clerk, letter.id)
    await create_rule(name="Circulars to HR", target="HR", keywords=["circular"])

    routing = await service.dispatcher.route(clerk, letter.id)

    assert isinstance(routing, DocumentRouting)
    assert routing.to_department == "HR"


@pytest.mark.asyncio
async def test_route_refuses_pending_letter(service, submit_letter, clerk, store):
    letter = await submit_letter()

    with pytest.raises(InvalidTransition):
        await service.dispatcher.route(clerk, letter.id)

    assert store.routings == {}


@pytest.mark.asyncio
async def test_route_refuses_while_routing_active(service, submit_letter, create_rule, clerk, store):
    await create_rule(title="contract")
    letter = await submit_letter()
    await service.verification.verify(clerk, letter.id)

    with pytest.raises(ConflictError):
        await service.dispatcher.route(clerk, letter.id)
    with pytest.raises(ConflictError):
        await service.dispatcher.route_manually(clerk, letter.id, "Finance")

    assert len(store.routings) == 1


@pytest.mark.asyncio
async def test_route_requires_router_role(service, submit_letter, clerk, legal_officer):
    letter = await submit_letter()
    await service.verification.verify(clerk, letter.id)

    with pytest.raises(Forbidden):
        await service.dispatcher.route(legal_officer, letter.id)
    with pytest.raises(Forbidden):
        await service.dispatcher.route_manually(legal_officer, letter.id, "Legal")


@pytest.mark.asyncio
async def test_manual_routing(service, submit_letter, clerk):
    letter = await submit_letter(title="Staff circular")
    await service.verification.verify(clerk, letter.id)

    routing = await service.dispatcher.route_manually(
        clerk, letter.id, " Finance ", notes="Budget question"
    )

    assert routing.to_department == "Finance"
    assert routing.routing_rule_id is None
    assert routing.notes == "Budget question"

    trail = await service.queries.get_audit_trail(ledger.ENTITY_ROUTING, routing.id)
    assert trail[0].details["manual"] is True


@pytest.mark.asyncio
async def test_manual_routing_validates_target(service, submit_letter, clerk):
    letter = await submit_letter()
    await service.verification.verify(clerk, letter.id)

    with pytest.raises(ValidationError):
        await service.dispatcher.route_manually(clerk, letter.id, "")
    with pytest.raises(ValidationError):
        await service.dispatcher.route_manually(clerk, letter.id, "Registry")


@pytest.mark.asyncio
async def test_rule_edits_do_not_touch_existing_routing(
    service, submit_letter, create_rule, clerk, admin, store
):
    rule = await create_rule(title="contract")
    letter = await submit_letter()
    routing = (await service.verification.verify(clerk, letter.id)).routing

    await service.rules.update_rule(admin, rule.id, RuleUpdate(target_department="Finance"))
    await service.rules.set_rule_active(admin, rule.id, False)

    kept = store.routings[routing.id]
    assert kept.to_department == "Legal"
    assert kept.routing_rule_id == rule.id
    assert kept.status == RoutingStatus.PENDING


@pytest.mark.asyncio
async def test_concurrent_routing_creates_one_active_routing(
    service, submit_letter, clerk, store
):
    letter = await submit_letter(title="Staff circular")
    await service.verification.verify(clerk, letter.id)

    results = await asyncio.gather(
        service.dispatcher.route_manually(clerk, letter.id, "Finance"),
        service.dispatcher.route_manually(clerk, letter.id, "HR"),
        return_exceptions=True,
    )

    assert sum(isinstance(r, DocumentRouting) for r in results) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1
    active = [r for r in store.routings.values() if r.is_active]
    assert len(active) == 1


@pytest.mark.asyncio
async def test_independent_letters_do_not_block(service, submit_letter, clerk):
    first = await submit_letter(reference="REG/1")
    second = await submit_letter(reference="REG/2")

    async with service.locks.hold(first.id):
        result = await asyncio.wait_for(
            service.verification.verify(clerk, second.id), timeout=1
        )

    assert result.letter.status == LetterStatus.VERIFIED


@pytest.mark.asyncio
async def test_refused_routing_is_audited_when_enabled(store, settings, submit_letter, clerk):
    from registrar.core.services import Registrar

    letter = await submit_letter()
    audited = Registrar(
        store.uow_factory(),
        settings=settings.model_copy(update={"audit_denied_transitions": True}),
    )

    with pytest.raises(InvalidTransition):
        await audited.dispatcher.route(clerk, letter.id)
    with pytest.raises(InvalidTransition):
        await audited.dispatcher.route_manually(clerk, letter.id, "Legal")

    trail = await audited.queries.get_audit_trail(ledger.ENTITY_LETTER, letter.id)
    assert [e.action for e in trail] == [
        ledger.LETTER_SUBMITTED,
        "letter.transition_denied",
        "letter.transition_denied",
    ]
    assert trail[-1].details == {"operation": "route", "status": "pending"}
    assert store.routings == {}


@pytest.mark.asyncio
async def test_refused_routing_not_audited_by_default(service, submit_letter, clerk, store):
    letter = await submit_letter()

    with pytest.raises(InvalidTransition):
        await service.dispatcher.route_manually(clerk, letter.id, "Legal")

    assert [e.action for e in store.audit_log] == [ledger.LETTER_SUBMITTED]
