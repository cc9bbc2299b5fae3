# (c) Copyright Datacraft, 2026
"""Letter verification state machine.

State Flow:
    pending -> verified | rejected

Terminal States: verified, rejected. A verified letter continues in the
routing machine.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from registrar.core.config import Settings
from registrar.core.exceptions import (
	ConflictError,
	Forbidden,
	InvalidTransition,
	ValidationError,
)
from registrar.core.features.audit import ledger
from registrar.core.features.auth import ActorContext, RolePolicy
from registrar.core.features.routing.schema import DocumentRouting, NoRuleMatched
from registrar.core.locks import KeyedLock
from registrar.core.repositories import UnitOfWorkFactory
from registrar.core.utils.tz import utc_now

from .schema import Letter, LetterStatus, LetterSubmit

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
	LetterStatus.PENDING: [LetterStatus.VERIFIED, LetterStatus.REJECTED],
	LetterStatus.VERIFIED: [],
	LetterStatus.REJECTED: [],
}


def can_transition(current: LetterStatus, new: LetterStatus) -> bool:
	return new in ALLOWED_TRANSITIONS.get(current, [])


def validate_transition(letter: Letter, new_status: LetterStatus, operation: str) -> None:
	"""Raises InvalidTransition when the letter cannot move to new_status."""
	if not can_transition(letter.status, new_status):
		raise InvalidTransition(
			ledger.ENTITY_LETTER, letter.id, letter.status.value, operation
		)


def apply_verification(letter: Letter, actor_id: str, now: datetime) -> Letter:
	validate_transition(letter, LetterStatus.VERIFIED, "verify")
	return letter.model_copy(update={
		"status": LetterStatus.VERIFIED,
		"verified_by": actor_id,
		"verified_at": now,
	})


def apply_rejection(letter: Letter, actor_id: str, reason: str, now: datetime) -> Letter:
	validate_transition(letter, LetterStatus.REJECTED, "reject")
	return letter.model_copy(update={
		"status": LetterStatus.REJECTED,
		"verified_by": actor_id,
		"verified_at": now,
		"rejection_reason": reason,
	})


@dataclass(frozen=True)
class VerificationResult:
	"""A verified letter and what routing did with it."""
	letter: Letter
	routing: DocumentRouting | NoRuleMatched | None

	@property
	def routed(self) -> bool:
		return isinstance(self.routing, DocumentRouting)


class VerificationService:
	"""Submission, verification and rejection of letters."""

	def __init__(
		self,
		uow_factory: UnitOfWorkFactory,
		dispatcher,
		policy: RolePolicy,
		locks: KeyedLock,
		settings: Settings,
	):
		self.uow_factory = uow_factory
		self.dispatcher = dispatcher
		self.policy = policy
		self.locks = locks
		self.settings = settings

	def _new_verification_code(self) -> str:
		return secrets.token_hex(self.settings.verification_code_length)[
			:self.settings.verification_code_length
		].upper()

	async def submit(self, actor: ActorContext, data: LetterSubmit) -> Letter:
		"""Create a letter in `pending`."""
		reference = (data.reference or "").strip()
		title = (data.title or "").strip()
		department = (data.department or actor.department or "").strip()

		if not reference:
			raise ValidationError("Reference number is required")
		if not title:
			raise ValidationError("Letter title is required")
		if not department:
			raise ValidationError("Origin department is required")

		letter = Letter(
			reference=reference,
			title=title,
			content=data.content,
			folder_id=data.folder_id,
			department=department,
			status=LetterStatus.PENDING,
			requires_passcode=data.requires_passcode,
			verification_code=(
				self._new_verification_code() if data.requires_passcode else None
			),
			uploaded_by=actor.actor_id,
			uploaded_at=utc_now(),
			doc_metadata=data.doc_metadata,
		)

		async with self.uow_factory() as uow:
			if await uow.letters.find_by_reference(reference) is not None:
				raise ConflictError(f"Letter reference already in use: {reference}")

			letter = await uow.letters.save(letter)
			await uow.audit.append(ledger.new_entry(
				ledger.LETTER_SUBMITTED,
				ledger.ENTITY_LETTER,
				letter.id,
				actor.actor_id,
				{
					"reference": letter.reference,
					"title": letter.title,
					"department": letter.department,
				},
			))
			await uow.commit()

		logger.info(f"Letter {letter.id} ({letter.reference}) submitted by {actor.actor_id}")
		return letter

	def _check_passcode(self, letter: Letter, passcode: str | None) -> None:
		if not letter.requires_passcode:
			return
		if not passcode:
			raise ValidationError("Verification passcode is required for this letter")
		supplied = passcode.strip().upper().encode()
		expected = (letter.verification_code or "").encode()
		if not secrets.compare_digest(supplied, expected):
			logger.warning(f"Wrong verification passcode for letter {letter.id}")
			raise Forbidden("Verification passcode does not match")

	async def verify(
		self,
		actor: ActorContext,
		letter_id: int,
		passcode: str | None = None,
	) -> VerificationResult:
		"""
		Verify a pending letter and route it.

		The verification commits before routing starts: a routing failure
		leaves the letter verified and routable later.
		"""
		async with self.locks.hold(letter_id):
			try:
				async with self.uow_factory() as uow:
					letter = await uow.letters.load(letter_id, for_update=True)
					self.policy.require_verifier(actor, letter.department)
					validate_transition(letter, LetterStatus.VERIFIED, "verify")
					self._check_passcode(letter, passcode)

					letter = apply_verification(letter, actor.actor_id, utc_now())
					letter = await uow.letters.save(letter)
					await uow.audit.append(ledger.new_entry(
						ledger.LETTER_VERIFIED,
						ledger.ENTITY_LETTER,
						letter.id,
						actor.actor_id,
						{"from_status": LetterStatus.PENDING.value},
					))
					await uow.commit()
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

			logger.info(f"Letter {letter_id} verified by {actor.actor_id}")
			outcome = await self.dispatcher.dispatch(letter_id, actor.actor_id)

		return VerificationResult(letter=letter, routing=outcome)

	async def reject(self, actor: ActorContext, letter_id: int, reason: str) -> Letter:
		"""Reject a pending letter; rejection is terminal."""
		reason = (reason or "").strip()
		if not reason:
			raise ValidationError("A rejection reason is required")

		async with self.locks.hold(letter_id):
			try:
				async with self.uow_factory() as uow:
					letter = await uow.letters.load(letter_id, for_update=True)
					self.policy.require_verifier(actor, letter.department)

					letter = apply_rejection(letter, actor.actor_id, reason, utc_now())
					letter = await uow.letters.save(letter)
					await uow.audit.append(ledger.new_entry(
						ledger.LETTER_REJECTED,
						ledger.ENTITY_LETTER,
						letter.id,
						actor.actor_id,
						{"from_status": LetterStatus.PENDING.value, "reason": reason},
					))
					await uow.commit()
			except InvalidTransition as exc:
				await ledger.transition_denied(
					self.uow_factory, self.settings, actor.actor_id, exc
				)
				raise

		logger.info(f"Letter {letter_id} rejected by {actor.actor_id}")
		return letter
