"""Erreurs applicatives et étape unique de formatage des réponses d'erreur."""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."


class AppError(Exception):
    """Erreur opérationnelle: statut connu, message jamais masqué."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None, headers: dict = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailed(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def _database_error(exc: SQLAlchemyError):
    if isinstance(exc, IntegrityError):
        return status.HTTP_409_CONFLICT, "A record with this value already exists"
    if isinstance(exc, PoolTimeoutError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "Database is busy. Please try again later."
    if isinstance(exc, OperationalError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "Unable to connect to database. Please try again later."
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "A database error occurred"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    message = first.get("msg", "Invalid input")
    if first.get("type") == "value_error":
        # messages de nos field_validator, déjà lisibles
        return message.replace("Value error, ", "")
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    return f"{field}: {message}" if field else message


def register_error_handlers(app: FastAPI, settings) -> None:
    """Toutes les erreurs passent par ici avant de sortir de l'API."""

    def respond(request: Request, status_code: int, message: str, exc: Exception = None,
                headers: dict = None) -> JSONResponse:
        body = {"error": message}
        if settings.is_development and exc is not None:
            body["detail"] = repr(exc)
            body["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return JSONResponse(status_code=status_code, content=body, headers=headers)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
        return respond(request, exc.status_code, exc.message, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.info("%s %s -> 400 %s", request.method, request.url.path, message)
        return respond(request, status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": "Not Found",
                    "message": f"Cannot {request.method} {request.url.path}",
                },
            )
        return respond(request, exc.status_code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        status_code, message = _database_error(exc)
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        if isinstance(exc, DBAPIError) and settings.is_production and status_code == 500:
            message = GENERIC_MESSAGE
        return respond(request, status_code, message, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = GENERIC_MESSAGE if settings.is_production else (str(exc) or GENERIC_MESSAGE)
        return respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc)
