"""Controllers translate HTTP requests into service calls and results into responses.

``error_response`` is the single place a raised error becomes an HTTP
response; the app's exception handlers delegate to it as well.
"""

import logging
import re
from typing import Any

from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from elucidario.core.errors import (
    ControllerError,
    ElucidarioError,
    NotFoundError,
    ValidationError,
)
from elucidario.models import EntityModel
from elucidario.queries.base import DEFAULT_LIMIT, ListParams

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {
    "error": "Internal Server Error",
    "message": "An unexpected error occurred.",
    "statusCode": 500,
}

_FIELD = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def error_response(exc: Exception) -> JSONResponse:
    """Map any exception to the ``{"error", "message", "statusCode"}`` envelope."""
    if isinstance(exc, ElucidarioError):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.message, exc_info=exc)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(exc.to_response_body(), status_code=exc.status_code, headers=headers)

    if isinstance(exc, RequestValidationError):
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            path = ".".join(str(part) for part in error["loc"])
            errors.setdefault(path, []).append(error["msg"])
        return error_response(ValidationError("Invalid request.", errors))

    logger.exception("Unhandled error while processing request", exc_info=exc)
    return JSONResponse(INTERNAL_ERROR_BODY, status_code=500)


def parse_list_params(
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    sort: str | None = None,
    filter_: str | None = None,
) -> ListParams:
    """Build ListParams from ``sort=name,-created_at`` and ``filter=role:admin,name:x``."""
    errors: dict[str, list[str]] = {}

    order = []
    for item in (sort or "").split(","):
        item = item.strip()
        if not item:
            continue
        key, direction = (item[1:], "DESC") if item.startswith("-") else (item, "ASC")
        if not _FIELD.match(key):
            errors.setdefault("sort", []).append(f"Invalid sort field: {item}")
            continue
        order.append((key, direction))

    filters: dict[str, str] = {}
    for item in (filter_ or "").split(","):
        if not item.strip():
            continue
        key, sep, value = item.partition(":")
        key = key.strip()
        if not sep or not _FIELD.match(key):
            errors.setdefault("filter", []).append(f"Invalid filter: {item}")
            continue
        filters[key] = value.strip()

    if errors:
        raise ValidationError("Invalid list parameters.", errors)

    return ListParams(limit=limit, offset=offset, sort=tuple(order), filters=filters)


class Controller:
    """Default controller: one method per CRUD operation."""

    def __init__(self, service: Any, model: type[EntityModel]):
        self.service = service
        self.model = model

    error = staticmethod(error_response)

    @staticmethod
    def respond(data: Any, status_code: int = 200) -> JSONResponse:
        return JSONResponse({"data": data}, status_code=status_code)

    @staticmethod
    async def body(request: Request) -> Any:
        try:
            return await request.json()
        except ValueError as e:
            raise ValidationError(
                "Request body must be valid JSON.", {"body": ["Invalid JSON."]}
            ) from e

    def not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.model.label} not found.")

    async def create(self, request: Request) -> Response:
        entity = await self.service.create(await self.body(request))
        return self.respond(entity, 201)

    async def read(self, uuid: str) -> Response:
        entity = await self.service.read(uuid)
        if entity is None:
            raise self.not_found()
        return self.respond(entity)

    async def list(self, params: ListParams) -> Response:
        return self.respond(await self.service.list(params))

    async def update(self, uuid: str, request: Request) -> Response:
        entity = await self.service.update(uuid, await self.body(request))
        if entity is None:
            raise self.not_found()
        return self.respond(entity)

    async def delete(self, uuid: str) -> Response:
        if not await self.service.delete(uuid):
            raise self.not_found()
        return Response(status_code=204)

    async def not_allowed(self) -> Response:
        raise ControllerError(f"This operation is not supported on {self.model.label}.", 405)


class ConfigController(Controller):
    """The config is a singleton: its list route answers with the object itself."""

    async def list(self, params: ListParams) -> Response:
        config = await self.service.list(params)
        if config is None:
            raise NotFoundError("Main config not found.")
        return self.respond(config)
