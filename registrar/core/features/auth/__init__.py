# (c) Copyright Datacraft, 2026
"""Actor context and role policy."""

from .actor import ActorContext, HeaderIdentityResolver, IdentityResolver
from .roles import RolePolicy

__all__ = [
	"ActorContext",
	"HeaderIdentityResolver",
	"IdentityResolver",
	"RolePolicy",
]
