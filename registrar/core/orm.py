# (c) Copyright Datacraft, 2026
"""Central ORM model exports."""
from .features.letters.db.orm import LetterORM
from .features.routing.db.orm import RoutingRuleORM, DocumentRoutingORM
from .features.audit.db.orm import AuditLogORM

__all__ = [
	'LetterORM',
	'RoutingRuleORM',
	'DocumentRoutingORM',
	'AuditLogORM',
]
