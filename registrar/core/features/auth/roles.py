# (c) Copyright Datacraft, 2026
"""Role checks for verification, routing and rule administration."""
import logging
from dataclasses import dataclass

from registrar.core.config import Settings
from registrar.core.exceptions import Forbidden
from registrar.core.features.routing.schema import DocumentRouting

from .actor import ActorContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RolePolicy:
	"""
	Maps role tags to capabilities.

	A capability role is scoped to the actor's own department unless it is
	also listed in `global_roles`.
	"""
	verifier_roles: frozenset[str]
	router_roles: frozenset[str]
	rule_admin_roles: frozenset[str]
	global_roles: frozenset[str]

	@classmethod
	def from_settings(cls, settings: Settings) -> "RolePolicy":
		return cls(
			verifier_roles=frozenset(settings.verifier_roles),
			router_roles=frozenset(settings.router_roles),
			rule_admin_roles=frozenset(settings.rule_admin_roles),
			global_roles=frozenset(settings.global_roles),
		)

	def _holds(
		self,
		actor: ActorContext,
		roles: frozenset[str],
		department: str | None,
	) -> bool:
		granted = actor.roles & roles
		if not granted:
			return False
		if granted & self.global_roles:
			return True
		return department is not None and actor.department == department

	def can_verify(self, actor: ActorContext, department: str) -> bool:
		return self._holds(actor, self.verifier_roles, department)

	def can_route(self, actor: ActorContext, department: str) -> bool:
		return self._holds(actor, self.router_roles, department)

	def can_handle_routing(self, actor: ActorContext, routing: DocumentRouting) -> bool:
		"""Members of either department, or routers of either, may move a delivery."""
		if actor.department in (routing.from_department, routing.to_department):
			return True
		return (
			self.can_route(actor, routing.from_department)
			or self.can_route(actor, routing.to_department)
		)

	def can_manage_rules(self, actor: ActorContext, department: str) -> bool:
		return self._holds(actor, self.rule_admin_roles, department)

	def require_verifier(self, actor: ActorContext, department: str) -> None:
		if not self.can_verify(actor, department):
			logger.warning(f"Actor {actor.actor_id} may not verify letters of {department}")
			raise Forbidden(f"Verification role required for department {department}")

	def require_router(self, actor: ActorContext, department: str) -> None:
		if not self.can_route(actor, department):
			logger.warning(f"Actor {actor.actor_id} may not route letters of {department}")
			raise Forbidden(f"Routing role required for department {department}")

	def require_routing_handler(self, actor: ActorContext, routing: DocumentRouting) -> None:
		if not self.can_handle_routing(actor, routing):
			logger.warning(f"Actor {actor.actor_id} may not handle routing {routing.id}")
			raise Forbidden(
				f"Only {routing.from_department} or {routing.to_department} "
				f"may handle this delivery"
			)

	def require_rule_admin(self, actor: ActorContext, department: str) -> None:
		if not self.can_manage_rules(actor, department):
			logger.warning(f"Actor {actor.actor_id} may not manage rules of {department}")
			raise Forbidden(f"Rule administration role required for department {department}")
