# (c) Copyright Datacraft, 2026
"""Maps engine errors onto HTTP responses."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from registrar.core.exceptions import (
	ConflictError,
	Forbidden,
	InvalidTransition,
	NotFound,
	RegistrarError,
	ValidationError,
)

logger = logging.getLogger(__name__)

_ENTITY_NOUNS = {
	"letter": "document",
	"routing": "delivery",
	"routing_rule": "rule",
}

_STATUS_CODES: list[tuple[type[RegistrarError], int, str]] = [
	(ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
	(Forbidden, status.HTTP_403_FORBIDDEN, "forbidden"),
	(NotFound, status.HTTP_404_NOT_FOUND, "not_found"),
	(InvalidTransition, status.HTTP_409_CONFLICT, "invalid_transition"),
	(ConflictError, status.HTTP_409_CONFLICT, "conflict"),
]


def error_response(exc: RegistrarError) -> JSONResponse:
	for exc_class, status_code, error in _STATUS_CODES:
		if isinstance(exc, exc_class):
			break
	else:
		status_code, error = status.HTTP_400_BAD_REQUEST, "error"

	content = {"error": error, "message": str(exc)}
	if isinstance(exc, InvalidTransition):
		noun = _ENTITY_NOUNS.get(exc.entity_type, exc.entity_type)
		content["message"] = f"This {noun} was already processed"
		content["details"] = {
			"entity_type": exc.entity_type,
			"entity_id": exc.entity_id,
			"current_status": exc.current_status,
			"operation": exc.operation,
		}

	return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:

	@app.exception_handler(RegistrarError)
	async def registrar_exception_handler(
		request: Request,
		exc: RegistrarError,
	) -> JSONResponse:
		if isinstance(exc, (Forbidden, InvalidTransition)):
			logger.warning(f"{request.method} {request.url.path} refused: {exc}")
		return error_response(exc)

	@app.exception_handler(SQLAlchemyError)
	async def database_exception_handler(
		request: Request,
		exc: SQLAlchemyError,
	) -> JSONResponse:
		"""Storage failures are logged in full but not exposed to the client."""
		logger.error(
			f"Database error on {request.method} {request.url.path}",
			exc_info=exc,
		)
		return JSONResponse(
			status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
			content={
				"error": "database_error",
				"message": "A database error occurred. Please try again later.",
			},
		)
