"""Error taxonomy shared by the query, service and HTTP layers.

Every error carries the HTTP status it maps to, so the Controller can turn any
of them into the ``{"error", "message", "statusCode"}`` envelope without
knowing where it was raised.
"""

from http import HTTPStatus
from typing import Any


class ElucidarioError(Exception):
    """Base class for every error the framework raises on purpose."""

    default_status: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code or self.default_status)
        self.details = details or {}

    @property
    def label(self) -> str:
        """Short label for the status code, e.g. ``Not Found``."""
        try:
            return HTTPStatus(self.status_code).phrase
        except ValueError:
            return "Error"

    def to_response_body(self) -> dict[str, Any]:
        """Build the failure envelope sent to clients."""
        return {
            "error": self.label,
            "message": self.message,
            "statusCode": self.status_code,
        }


class ValidationError(ElucidarioError):
    """Raised when input fails the entity schema."""

    default_status = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str = "Invalid data.",
        errors: dict[str, list[str]] | None = None,
        entity: str | None = None,
    ):
        super().__init__(message)
        self.errors = errors or {}
        self.entity = entity

    def to_response_body(self) -> dict[str, Any]:
        body = super().to_response_body()
        if self.errors:
            body["details"] = self.errors
        return body


class AuthorizationError(ElucidarioError):
    """Raised when a request is unauthenticated (401) or denied (403)."""

    default_status = HTTPStatus.FORBIDDEN


class NotFoundError(ElucidarioError):
    """Raised when a read/update/delete target does not exist."""

    default_status = HTTPStatus.NOT_FOUND


class ServiceError(ElucidarioError):
    """Raised on business-rule violations; status is declared per case."""

    default_status = HTTPStatus.BAD_REQUEST


class QueryError(ElucidarioError):
    """Raised when the store rejects or fails a query."""

    default_status = HTTPStatus.INTERNAL_SERVER_ERROR


class GraphError(ElucidarioError):
    """Raised on connection or driver level failures."""

    default_status = HTTPStatus.INTERNAL_SERVER_ERROR


class ControllerError(ElucidarioError):
    """Raised when a resource does not support the requested operation."""

    default_status = HTTPStatus.METHOD_NOT_ALLOWED
