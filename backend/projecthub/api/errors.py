"""Exception handlers producing the ``{"message": ...}`` error envelope."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from projecthub.exceptions import ProjectHubError

logger = structlog.get_logger()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    # Drop the "body"/"query"/"path" prefix so the client sees the field name
    location = [str(part) for part in first.get("loc", ())[1:]]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {message}" if location else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    message = _validation_message(exc)
    logger.info("request_validation_failed", message=message)
    return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def domain_exception_handler(request: Request, exc: ProjectHubError) -> ORJSONResponse:
    return ORJSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> ORJSONResponse:
    logger.error("database_request_failed", error=str(exc), exc_info=exc)
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Database request failed."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope handlers on the application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ProjectHubError, domain_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
