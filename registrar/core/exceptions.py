# (c) Copyright Datacraft, 2026
"""Error taxonomy of the verification and routing engine.

Storage failures (SQLAlchemy errors, failed audit appends) are not wrapped:
they propagate as-is after the unit of work has rolled back.
"""


class RegistrarError(Exception):
	"""Base class for expected, caller-recoverable errors."""
	pass


class ValidationError(RegistrarError):
	"""Malformed input, rejected before any state change."""
	pass


class Forbidden(RegistrarError):
	"""Actor lacks the required role or department scope."""
	pass


class NotFound(RegistrarError):
	"""Referenced letter, rule or routing record does not exist."""
	pass


class ConflictError(RegistrarError):
	"""Operation collides with existing state (active routing, duplicate reference)."""
	pass


class InvalidTransition(RegistrarError):
	"""Operation not permitted from the entity's current state."""

	def __init__(
		self,
		entity_type: str,
		entity_id: int | str | None,
		current_status: str,
		operation: str,
	):
		self.entity_type = entity_type
		self.entity_id = entity_id
		self.current_status = current_status
		self.operation = operation
		super().__init__(
			f"Cannot {operation} {entity_type} {entity_id}: "
			f"current status is '{current_status}'"
		)
