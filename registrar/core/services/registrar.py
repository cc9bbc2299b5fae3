# (c) Copyright Datacraft, 2026
"""Wires the engine's services around one unit-of-work factory."""
import logging

from registrar.core.config import Settings, get_settings
from registrar.core.features.auth import RolePolicy
from registrar.core.features.letters.verification import VerificationService
from registrar.core.features.routing.delivery import DeliveryService
from registrar.core.features.routing.dispatcher import RoutingDispatcher
from registrar.core.features.routing.rules import RuleStore
from registrar.core.locks import KeyedLock
from registrar.core.repositories import UnitOfWorkFactory

from .queries import QueryService

logger = logging.getLogger(__name__)


class Registrar:
	"""
	Verification, routing and delivery over a shared lock table.

	All services must share one `KeyedLock` so that per-letter serialization
	holds across verify, reject, route and delivery transitions.
	"""

	def __init__(
		self,
		uow_factory: UnitOfWorkFactory,
		settings: Settings | None = None,
		policy: RolePolicy | None = None,
	):
		self.settings = settings or get_settings()
		self.policy = policy or RolePolicy.from_settings(self.settings)
		self.locks = KeyedLock()

		self.dispatcher = RoutingDispatcher(
			uow_factory, self.policy, self.locks, self.settings
		)
		self.verification = VerificationService(
			uow_factory, self.dispatcher, self.policy, self.locks, self.settings
		)
		self.delivery = DeliveryService(uow_factory, self.policy, self.locks, self.settings)
		self.rules = RuleStore(uow_factory, self.policy, self.settings)
		self.queries = QueryService(uow_factory)


_registrar: Registrar | None = None


def get_registrar() -> Registrar:
	"""Process-wide registrar backed by the configured database."""
	global _registrar
	if _registrar is None:
		from registrar.core.db.engine import get_session_factory
		from registrar.core.db.uow import sql_uow_factory

		_registrar = Registrar(sql_uow_factory(get_session_factory()))
		logger.info("Registrar initialised")
	return _registrar
