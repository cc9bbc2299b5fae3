# (c) Copyright Datacraft, 2026
"""Tests for the letter verification state machine."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from registrar.core.exceptions import (
    ConflictError,
    Forbidden,
    InvalidTransition,
    ValidationError,
)
from registrar.core.features.audit import ledger
from registrar.core.features.letters.schema import LetterStatus, LetterSubmit
from registrar.core.features.letters.verification import can_transition
from registrar.core.features.routing.schema import NoRuleMatched


def test_transition_table():
    assert can_transition(LetterStatus.PENDING, LetterStatus.VERIFIED)
    assert can_transition(LetterStatus.PENDING, LetterStatus.REJECTED)
    assert not can_transition(LetterStatus.VERIFIED, LetterStatus.REJECTED)
    assert not can_transition(LetterStatus.REJECTED, LetterStatus.VERIFIED)
    assert not can_transition(LetterStatus.VERIFIED, LetterStatus.PENDING)


@pytest.mark.asyncio
async def test_submit_creates_pending_letter(service, store, submit_letter, clerk):
    letter = await submit_letter()

    assert letter.id == 1
    assert letter.status == LetterStatus.PENDING
    assert letter.department == "Registry"
    assert letter.uploaded_by == clerk.actor_id
    assert letter.verification_code is None
    assert store.letters[1].reference == "REG/2024/001"

    trail = await service.queries.get_audit_trail(ledger.ENTITY_LETTER, letter.id)
    assert [e.action for e in trail] == [ledger.LETTER_SUBMITTED]


@pytest.mark.asyncio
async def test_submit_rejects_duplicate_reference(submit_letter, store):
    await submit_letter()

    with pytest.raises(ConflictError):
        await submit_letter(title="Another letter")

    assert len(store.letters) == 1
    assert len(store.audit_log) == 1


@pytest.mark.asyncio
async def test_submit_requires_reference_and_title(service, clerk, store):
    with pytest.raises(ValidationError):
        await service.verification.submit(clerk, LetterSubmit(reference="  ", title="x"))
    with pytest.raises(ValidationError):
        await service.verification.submit(clerk, LetterSubmit(reference="R-1", title=""))

    assert store.letters == {}
    assert store.audit_log == []


@pytest.mark.asyncio
async def test_submit_passcode_protected_letter(submit_letter):
    letter = await submit_letter(requires_passcode=True)

    assert len(letter.verification_code) == 8
    assert letter.verification_code == letter.verification_code.upper()


@pytest.mark.asyncio
async def test_verify_without_rules_leaves_letter_verified(service, submit_letter, clerk):
    letter = await submit_letter()

    result = await service.verification.verify(clerk, letter.id)

    assert result.letter.status == LetterStatus.VERIFIED
    assert result.letter.verified_by == clerk.actor_id
    assert result.letter.verified_at is not None
    assert not result.routed


@pytest.mark.asyncio
async def test_verify_routes_by_rule(service, submit_letter, create_rule, clerk):
    rule = await create_rule(title="contract", priority=8)
    letter = await submit_letter()

    result = await service.verification.verify(clerk, letter.id)

    assert result.routed
    assert result.routing.from_department == "Registry"
    assert result.routing.to_department == "Legal"
    assert result.routing.routing_rule_id == rule.id

    actions = [e.action for e in await service.queries.get_audit_trail("letter", letter.id)]
    assert actions == [ledger.LETTER_SUBMITTED, ledger.LETTER_VERIFIED]


@pytest.mark.asyncio
async def test_verify_twice_fails(service, submit_letter, clerk, store):
    letter = await submit_letter()
    await service.verification.verify(clerk, letter.id)
    entries_before = len(store.audit_log)

    with pytest.raises(InvalidTransition) as exc_info:
        await service.verification.verify(clerk, letter.id)

    assert exc_info.value.current_status == "verified"
    assert exc_info.value.operation == "verify"
    assert len(store.audit_log) == entries_before


@pytest.mark.asyncio
async def test_rejected_letter_stays_rejected(service, submit_letter, clerk, store):
    letter = await submit_letter()
    rejected = await service.verification.reject(clerk, letter.id, "Missing signature")

    assert rejected.status == LetterStatus.REJECTED
    assert rejected.rejection_reason == "Missing signature"

    with pytest.raises(InvalidTransition):
        await service.verification.verify(clerk, letter.id)
    with pytest.raises(InvalidTransition):
        await service.verification.reject(clerk, letter.id, "Again")

    assert store.letters[letter.id].status == LetterStatus.REJECTED
    assert store.letters[letter.id].rejection_reason == "Missing signature"
    assert store.routings == {}


@pytest.mark.asyncio
async def test_reject_records_reason(service, submit_letter, clerk):
    letter = await submit_letter()
    await service.verification.reject(clerk, letter.id, "Wrong department")

    trail = await service.queries.get_audit_trail("letter", letter.id)
    assert trail[-1].action == ledger.LETTER_REJECTED
    assert trail[-1].details["reason"] == "Wrong department"


@pytest.mark.asyncio
async def test_reject_requires_reason(service, submit_letter, clerk, store):
    letter = await submit_letter()

    with pytest.raises(ValidationError):
        await service.verification.reject(clerk, letter.id, "   ")

    assert store.letters[letter.id].status == LetterStatus.PENDING


@pytest.mark.asyncio
async def test_verify_requires_role_in_letter_department(
    service, submit_letter, legal_officer, hr_officer, store
):
    letter = await submit_letter()

    with pytest.raises(Forbidden):
        await service.verification.verify(legal_officer, letter.id)
    with pytest.raises(Forbidden):
        await service.verification.reject(hr_officer, letter.id, "Not ours")

    assert store.letters[letter.id].status == LetterStatus.PENDING
    assert len(store.audit_log) == 1


@pytest.mark.asyncio
async def test_forbidden_before_invalid_transition(service, submit_letter, clerk, legal_officer):
    """An actor without the role learns nothing about the letter's state."""
    letter = await submit_letter()
    await service.verification.verify(clerk, letter.id)

    with pytest.raises(Forbidden):
        await service.verification.verify(legal_officer, letter.id)


@pytest.mark.asyncio
async def test_admin_verifies_any_department(service, submit_letter, admin):
    letter = await submit_letter()

    result = await service.verification.verify(admin, letter.id)

    assert result.letter.status == LetterStatus.VERIFIED


@pytest.mark.asyncio
async def test_passcode_checked_on_verify(service, submit_letter, clerk, store):
    letter = await submit_letter(requires_passcode=True)

    with pytest.raises(ValidationError):
        await service.verification.verify(clerk, letter.id)
    with pytest.raises(Forbidden):
        await service.verification.verify(clerk, letter.id, passcode="not-the-code")
    assert store.letters[letter.id].status == LetterStatus.PENDING

    result = await service.verification.verify(
        clerk, letter.id, passcode=letter.verification_code.lower()
    )
    assert result.letter.status == LetterStatus.VERIFIED


@pytest.mark.asyncio
async def test_concurrent_verify_routes_once(service, submit_letter, create_rule, clerk, store):
    await create_rule(title="contract")
    letter = await submit_letter()

    results = await asyncio.gather(
        service.verification.verify(clerk, letter.id),
        service.verification.verify(clerk, letter.id),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], InvalidTransition)
    assert len(store.routings) == 1
    assert len(service.locks) == 0


@pytest.mark.asyncio
async def test_denied_transition_audit_is_opt_in(store, settings, submit_letter, clerk):
    from registrar.core.services import Registrar

    letter = await submit_letter()
    audited = Registrar(
        store.uow_factory(),
        settings=settings.model_copy(update={"audit_denied_transitions": True}),
    )
    await audited.verification.verify(clerk, letter.id)

    with pytest.raises(InvalidTransition):
        await audited.verification.verify(clerk, letter.id)

    trail = await audited.queries.get_audit_trail("letter", letter.id)
    assert trail[-1].action == "letter.transition_denied"
    assert trail[-1].details == {"operation": "verify", "status": "verified"}


@pytest.mark.asyncio
async def test_verify_hands_letter_to_dispatcher(service, submit_letter, clerk):
    """Routing starts only after the verification is committed."""
    letter = await submit_letter()
    unmatched = NoRuleMatched(letter_id=letter.id, source_department="Registry", rules_evaluated=0)
    dispatcher = AsyncMock()
    dispatcher.dispatch.return_value = unmatched
    service.verification.dispatcher = dispatcher

    result = await service.verification.verify(clerk, letter.id)

    dispatcher.dispatch.assert_awaited_once_with(letter.id, clerk.actor_id)
    assert result.routing is unmatched
    status = await service.queries.get_letter_status(letter.id)
    assert status.status == LetterStatus.VERIFIED
