# (c) Copyright Datacraft, 2026
"""Tests for role policy and header identity resolution."""
import pytest

from registrar.core.exceptions import Forbidden
from registrar.core.features.auth import ActorContext, HeaderIdentityResolver, RolePolicy
from registrar.core.features.routing.schema import DocumentRouting


@pytest.fixture
def policy(settings):
    return RolePolicy.from_settings(settings)


def make_routing() -> DocumentRouting:
    return DocumentRouting(
        id=1,
        letter_id=1,
        from_department="Registry",
        to_department="Legal",
        routed_by="registry.clerk",
    )


def test_department_role_is_scoped(policy, clerk):
    assert policy.can_verify(clerk, "Registry")
    assert not policy.can_verify(clerk, "Legal")
    assert policy.can_route(clerk, "Registry")
    assert not policy.can_manage_rules(clerk, "Registry")


def test_global_role_is_not_scoped(policy, admin):
    assert policy.can_verify(admin, "Legal")
    assert policy.can_route(admin, "HR")
    assert policy.can_manage_rules(admin, "Finance")


def test_role_without_department_grants_nothing(policy):
    actor = ActorContext(actor_id="floating", roles=frozenset({"registry"}))

    assert not policy.can_verify(actor, "Registry")


def test_routing_handlers(policy, clerk, legal_officer, hr_officer, admin):
    routing = make_routing()

    assert policy.can_handle_routing(clerk, routing)
    assert policy.can_handle_routing(legal_officer, routing)
    assert policy.can_handle_routing(admin, routing)
    assert not policy.can_handle_routing(hr_officer, routing)

    with pytest.raises(Forbidden):
        policy.require_routing_handler(hr_officer, routing)


def test_custom_roles_from_settings(settings):
    policy = RolePolicy.from_settings(
        settings.model_copy(update={"verifier_roles": {"clerk"}})
    )
    actor = ActorContext(actor_id="a", roles=frozenset({"clerk"}), department="HR")

    assert policy.can_verify(actor, "HR")
    with pytest.raises(Forbidden):
        policy.require_router(actor, "HR")


def test_resolve_from_headers(settings):
    resolver = HeaderIdentityResolver(settings)

    actor = resolver.resolve({
        "X-Forwarded-User": "registry.clerk",
        "X-Forwarded-Roles": "registry, ,verifier",
        "X-Forwarded-Department": "Registry",
    })

    assert actor == ActorContext(
        actor_id="registry.clerk",
        roles=frozenset({"registry", "verifier"}),
        department="Registry",
    )


def test_resolve_without_roles(settings):
    actor = HeaderIdentityResolver(settings).resolve({"X-Forwarded-User": "guest"})

    assert actor.roles == frozenset()
    assert actor.department is None


def test_resolve_requires_user(settings):
    with pytest.raises(Forbidden):
        HeaderIdentityResolver(settings).resolve({"X-Forwarded-Roles": "admin"})
