"""Generic CRUD route binder.

An ``EntityRouter`` ties one endpoint to a service class and a controller
class. Routes are registered per capability: ``register_post_route`` needs a
``Creatable`` service, ``register_get_route`` a ``Readable`` one and so on;
``register_routes`` registers every route the service supports.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from starlette.requests import Request
from starlette.responses import Response

from elucidario.api.controller import Controller, parse_list_params
from elucidario.api.dependencies import anonymous, authenticate_request, get_core
from elucidario.core.schemas import AuthContext
from elucidario.queries.base import DEFAULT_LIMIT, MAX_LIMIT
from elucidario.services.base import (
    AbstractService,
    Creatable,
    Deletable,
    Listable,
    Readable,
    Updatable,
)

RouteKind = Literal["post", "get", "list", "update", "delete"]


@dataclass(frozen=True)
class RouteOptions:
    authenticate: bool = True
    summary: str | None = None


DEFAULT_OPTIONS = RouteOptions()


class EntityRouter:
    """Routes of one entity resource under ``/{endpoint}``.

    Args:
        endpoint: Resource path, may contain path parameters
            (``workspaces/{workspaceUUID}/members``)
        service_class: Service built for every request
        controller_class: Controller wrapping the service
        id_param: Name of the item path parameter
    """

    def __init__(
        self,
        endpoint: str,
        service_class: type[AbstractService],
        controller_class: type[Controller] = Controller,
        id_param: str = "uuid",
        tags: list[str] | None = None,
    ):
        self.endpoint = endpoint.strip("/")
        self.service_class = service_class
        self.controller_class = controller_class
        self.id_param = id_param
        self.item_path = f"/{{{id_param}}}"
        self.router = APIRouter(
            prefix=f"/{self.endpoint}", tags=tags or [self.endpoint.split("/")[-1]]
        )

    @property
    def model(self):
        return self.service_class.model

    def _require(self, capability: type, kind: RouteKind) -> None:
        if not issubclass(self.service_class, capability):
            raise TypeError(
                f"{self.service_class.__name__} does not implement "
                f"{capability.__name__}; cannot register the {kind} route "
                f"of '{self.endpoint}'."
            )

    @staticmethod
    def _context(options: RouteOptions) -> Callable[..., Awaitable[AuthContext | None]]:
        return authenticate_request if options.authenticate else anonymous

    def _body_schema(self, kind: str) -> dict[str, Any]:
        return {
            "requestBody": {
                "content": {"application/json": {"schema": self.model.json_schema(kind)}},
                "required": True,
            }
        }

    async def _dispatch(
        self,
        request: Request,
        context: AuthContext | None,
        call: Callable[[Controller], Awaitable[Response]],
    ) -> Response:
        core = get_core(request)
        scope = {
            prop: request.path_params[param]
            for param, prop in self.service_class.scope_params.items()
        }
        service = self.service_class(core, context, scope)
        controller = self.controller_class(service, self.model)
        try:
            return await call(controller)
        except Exception as exc:
            return controller.error(exc)

    def _item_id(self, request: Request) -> str:
        return request.path_params[self.id_param]

    def register_post_route(self, options: RouteOptions = DEFAULT_OPTIONS) -> None:
        self._require(Creatable, "post")

        async def create(
            request: Request,
            context: AuthContext | None = Depends(self._context(options)),
        ) -> Response:
            return await self._dispatch(
                request, context, lambda controller: controller.create(request)
            )

        self.router.add_api_route(
            "",
            create,
            methods=["POST"],
            status_code=201,
            response_model=None,
            summary=options.summary or f"Create {self.model.label}",
            openapi_extra=self._body_schema("create"),
        )

    def register_get_route(self, options: RouteOptions = DEFAULT_OPTIONS) -> None:
        self._require(Readable, "get")

        async def read(
            request: Request,
            context: AuthContext | None = Depends(self._context(options)),
        ) -> Response:
            return await self._dispatch(
                request, context, lambda controller: controller.read(self._item_id(request))
            )

        self.router.add_api_route(
            self.item_path,
            read,
            methods=["GET"],
            response_model=None,
            summary=options.summary or f"Read {self.model.label}",
        )

    def register_list_route(self, options: RouteOptions = DEFAULT_OPTIONS) -> None:
        self._require(Listable, "list")

        async def list_entities(
            request: Request,
            limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
            offset: int = Query(0, ge=0),
            sort: str | None = Query(None, description="field or -field, comma separated"),
            filter_: str | None = Query(
                None, alias="filter", description="field:value, comma separated"
            ),
            context: AuthContext | None = Depends(self._context(options)),
        ) -> Response:
            async def call(controller: Controller) -> Response:
                params = parse_list_params(limit, offset, sort, filter_)
                return await controller.list(params)

            return await self._dispatch(request, context, call)

        self.router.add_api_route(
            "",
            list_entities,
            methods=["GET"],
            response_model=None,
            summary=options.summary or f"List {self.model.label}",
        )

    def register_update_route(self, options: RouteOptions = DEFAULT_OPTIONS) -> None:
        self._require(Updatable, "update")

        async def update(
            request: Request,
            context: AuthContext | None = Depends(self._context(options)),
        ) -> Response:
            return await self._dispatch(
                request,
                context,
                lambda controller: controller.update(self._item_id(request), request),
            )

        self.router.add_api_route(
            self.item_path,
            update,
            methods=["PUT"],
            response_model=None,
            summary=options.summary or f"Update {self.model.label}",
            openapi_extra=self._body_schema("update"),
        )

    def register_delete_route(self, options: RouteOptions = DEFAULT_OPTIONS) -> None:
        self._require(Deletable, "delete")

        async def delete(
            request: Request,
            context: AuthContext | None = Depends(self._context(options)),
        ) -> Response:
            return await self._dispatch(
                request, context, lambda controller: controller.delete(self._item_id(request))
            )

        self.router.add_api_route(
            self.item_path,
            delete,
            methods=["DELETE"],
            status_code=204,
            response_model=None,
            summary=options.summary or f"Delete {self.model.label}",
        )

    def register_not_allowed_route(self, *methods: str) -> None:
        """Answer ``methods`` on the item path with 405 in the standard envelope."""

        async def not_allowed(request: Request) -> Response:
            return await self._dispatch(
                request, None, lambda controller: controller.not_allowed()
            )

        self.router.add_api_route(
            self.item_path,
            not_allowed,
            methods=list(methods),
            response_model=None,
            include_in_schema=False,
        )

    def register_routes(
        self, options: RouteOptions | Mapping[RouteKind, RouteOptions] = DEFAULT_OPTIONS
    ) -> APIRouter:
        """Register the route of every capability the service implements."""
        registrations: list[tuple[type, RouteKind, Callable[[RouteOptions], None]]] = [
            (Creatable, "post", self.register_post_route),
            (Listable, "list", self.register_list_route),
            (Readable, "get", self.register_get_route),
            (Updatable, "update", self.register_update_route),
            (Deletable, "delete", self.register_delete_route),
        ]
        for capability, kind, register in registrations:
            if not issubclass(self.service_class, capability):
                continue
            if isinstance(options, RouteOptions):
                register(options)
            else:
                register(options.get(kind, DEFAULT_OPTIONS))
        return self.router
