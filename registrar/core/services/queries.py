# (c) Copyright Datacraft, 2026
"""Read-only query surfaces for the UI and reporting layer."""
import logging

from registrar.core.features.audit.schema import AuditLogEntry, AuditVerification
from registrar.core.features.audit.security import verify_audit_entries
from registrar.core.features.letters.schema import LetterStatusInfo
from registrar.core.features.routing.schema import DocumentRouting
from registrar.core.repositories import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class QueryService:

	def __init__(self, uow_factory: UnitOfWorkFactory):
		self.uow_factory = uow_factory

	async def get_letter_status(self, letter_id: int) -> LetterStatusInfo:
		async with self.uow_factory() as uow:
			letter = await uow.letters.load(letter_id)
			active = await uow.letters.find_active_routing_for(letter_id)

		return LetterStatusInfo(
			id=letter.id,
			reference=letter.reference,
			department=letter.department,
			status=letter.status,
			verified_by=letter.verified_by,
			verified_at=letter.verified_at,
			rejection_reason=letter.rejection_reason,
			active_routing_id=active.id if active else None,
		)

	async def get_routing_history(self, letter_id: int) -> list[DocumentRouting]:
		"""Every routing of the letter, oldest first. Unknown letters raise NotFound."""
		async with self.uow_factory() as uow:
			await uow.letters.load(letter_id)
			return await uow.routings.list_for_letter(letter_id)

	async def get_audit_trail(self, entity_type: str, entity_id: int | str) -> list[AuditLogEntry]:
		async with self.uow_factory() as uow:
			return await uow.audit.list_for_entity(entity_type, str(entity_id))

	async def verify_audit_log(self) -> AuditVerification:
		async with self.uow_factory() as uow:
			entries = await uow.audit.list_all()

		valid, checked, error = verify_audit_entries(entries)
		return AuditVerification(valid=valid, entries_checked=checked, error=error)
