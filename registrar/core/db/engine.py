import logging
import ssl

from sqlalchemy.ext.asyncio import (
	AsyncEngine,
	AsyncSession,
	async_sessionmaker,
	create_async_engine,
)
from sqlalchemy.pool import NullPool

from registrar.core.config import get_settings
from registrar.core.db.base import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
	global _engine
	if _engine is None:
		settings = get_settings()
		url = settings.async_db_url

		connect_args = {}
		engine_kwargs = {}
		if url.startswith("postgresql"):
			engine_kwargs["poolclass"] = NullPool
			if settings.db_ssl:
				# asyncpg requires an SSL context, not sslmode
				ssl_context = ssl.create_default_context()
				ssl_context.check_hostname = False
				ssl_context.verify_mode = ssl.CERT_NONE
				connect_args["ssl"] = ssl_context

		_engine = create_async_engine(
			url,
			echo=settings.db_echo,
			connect_args=connect_args,
			**engine_kwargs,
		)
	return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
	global _session_factory
	if _session_factory is None:
		_session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
	return _session_factory


async def create_all(engine: AsyncEngine | None = None) -> None:
	"""Create all tables known to the ORM."""
	# registers every model on Base.metadata
	from registrar.core import orm  # noqa: F401

	engine = engine or get_engine()
	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)
	logger.info("Database schema created")
