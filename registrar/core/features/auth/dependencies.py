# (c) Copyright Datacraft, 2026
"""FastAPI dependencies resolving the calling actor."""
from typing import Annotated

from fastapi import Depends, Request

from registrar.core.config import get_settings

from .actor import ActorContext, HeaderIdentityResolver, IdentityResolver


def get_identity_resolver() -> IdentityResolver:
	return HeaderIdentityResolver(get_settings())


def get_actor(
	request: Request,
	resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
) -> ActorContext:
	return resolver.resolve(request.headers)


CurrentActor = Annotated[ActorContext, Depends(get_actor)]
