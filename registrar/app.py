import logging
from contextlib import asynccontextmanager
from logging.config import dictConfig

import yaml
from fastapi import FastAPI

from registrar.core.config import get_settings
from registrar.core.db.engine import create_all
from registrar.core.features.audit.router import router as audit_router
from registrar.core.features.letters.router import router as letters_router
from registrar.core.features.routing.router import router as routing_router
from registrar.core.routers.errors import register_exception_handlers
from registrar.core.version import __version__

logger = logging.getLogger(__name__)
config = get_settings()
prefix = config.api_prefix


@asynccontextmanager
async def lifespan(app: FastAPI):
	"""Application lifespan handler for startup/shutdown events."""
	logger.info("Starting registrar API server...")
	await create_all()

	yield

	logger.info("Shutting down registrar API server...")


app = FastAPI(
	title="Registrar REST API",
	version=__version__,
	lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(letters_router, prefix=prefix)
app.include_router(routing_router, prefix=prefix)
app.include_router(audit_router, prefix=prefix)


if config.log_config and config.log_config.exists() and config.log_config.is_file():
	with open(config.log_config, "r") as stream:
		logging_config = yaml.load(stream, Loader=yaml.FullLoader)

	dictConfig(logging_config)
