# (c) Copyright Datacraft, 2026
"""Resolved identity of the caller.

The engine never sees credentials. An `IdentityResolver` turns whatever the
identity layer provides into an `ActorContext`; the resolver is swappable.
"""
import logging
from dataclasses import dataclass, field
from typing import Mapping, Protocol

from registrar.core.config import Settings, get_settings
from registrar.core.exceptions import Forbidden

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
	"""Authenticated actor with role tags and home department."""
	actor_id: str
	roles: frozenset[str] = field(default_factory=frozenset)
	department: str | None = None

	def has_any_role(self, roles) -> bool:
		return bool(self.roles & set(roles))


class IdentityResolver(Protocol):

	def resolve(self, headers: Mapping[str, str]) -> ActorContext:
		"""Raises Forbidden when no identity can be established."""


class HeaderIdentityResolver:
	"""
	Reads the identity from headers set by a trusted authenticating proxy.

	Roles are a comma separated list; blank entries are dropped.
	"""

	def __init__(self, settings: Settings | None = None):
		settings = settings or get_settings()
		self.user_header = settings.remote_user_header
		self.roles_header = settings.remote_roles_header
		self.department_header = settings.remote_department_header

	def resolve(self, headers: Mapping[str, str]) -> ActorContext:
		actor_id = (headers.get(self.user_header) or "").strip()
		if not actor_id:
			logger.warning(f"Request without {self.user_header} header")
			raise Forbidden("Authentication required")

		roles = frozenset(
			r.strip() for r in (headers.get(self.roles_header) or "").split(",")
			if r.strip()
		)
		department = (headers.get(self.department_header) or "").strip() or None

		return ActorContext(actor_id=actor_id, roles=roles, department=department)
