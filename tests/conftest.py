# (c) Copyright Datacraft, 2026
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from registrar.core.config import Settings
from registrar.core.db.engine import create_all
from registrar.core.db.memory import MemoryStore
from registrar.core.db.uow import sql_uow_factory
from registrar.core.features.auth import ActorContext
from registrar.core.features.letters.schema import LetterSubmit
from registrar.core.features.routing.schema import RuleConditions, RuleCreate
from registrar.core.services import Registrar, get_registrar


@pytest.fixture
def settings():
    return Settings(db_url="sqlite+aiosqlite://", log_config=None)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def service(store, settings):
    return Registrar(store.uow_factory(), settings=settings)


@pytest.fixture
def admin():
    return ActorContext(actor_id="admin", roles=frozenset({"admin"}))


@pytest.fixture
def clerk():
    """Registry clerk: verifies and routes Registry letters."""
    return ActorContext(
        actor_id="registry.clerk",
        roles=frozenset({"registry"}),
        department="Registry",
    )


@pytest.fixture
def legal_officer():
    return ActorContext(
        actor_id="legal.officer",
        roles=frozenset({"officer"}),
        department="Legal",
    )


@pytest.fixture
def hr_officer():
    return ActorContext(
        actor_id="hr.officer",
        roles=frozenset({"officer"}),
        department="HR",
    )


@pytest.fixture
def submit_letter(service, clerk):
    async def _submit(
        reference="REG/2024/001",
        title="Supply Contract 2024",
        actor=None,
        **kwargs,
    ):
        return await service.verification.submit(
            actor or clerk,
            LetterSubmit(reference=reference, title=title, **kwargs),
        )

    return _submit


@pytest.fixture
def create_rule(service, admin):
    async def _create(
        name="Contracts to Legal",
        source="Registry",
        target="Legal",
        priority=5,
        **conditions,
    ):
        return await service.rules.create_rule(
            admin,
            RuleCreate(
                name=name,
                source_department=source,
                target_department=target,
                priority=priority,
                conditions=RuleConditions(**conditions),
            ),
        )

    return _create


@pytest.fixture
async def sql_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sql_service(sql_engine, settings):
    session_factory = async_sessionmaker(sql_engine, expire_on_commit=False)
    return Registrar(sql_uow_factory(session_factory), settings=settings)


@pytest.fixture
def client(service):
    from registrar.app import app

    app.dependency_overrides[get_registrar] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def identity():
    """Build the headers an authenticating proxy would set."""
    def _headers(user, roles="", department=None) -> dict[str, str]:
        headers = {"X-Forwarded-User": user, "X-Forwarded-Roles": roles}
        if department:
            headers["X-Forwarded-Department"] = department
        return headers

    return _headers
