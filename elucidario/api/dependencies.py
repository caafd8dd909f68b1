"""FastAPI dependencies shared by every route."""

from starlette.requests import Request

from elucidario.core.core import Core
from elucidario.core.errors import AuthorizationError
from elucidario.core.schemas import WORKSPACE_PARAM, AuthContext

WORKSPACE_HEADER = "X-Workspace"


def get_core(request: Request) -> Core:
    return request.app.state.core


async def authenticate_request(request: Request) -> AuthContext:
    """Resolve the request's AuthContext and expose it on ``request.state``.

    The workspace comes from the ``workspaceUUID`` path parameter, or from
    the ``X-Workspace`` header on routes outside a workspace path.

    Raises:
        AuthorizationError: 401 when no strategy recognizes the request
    """
    authenticator = get_core(request).authenticator
    lookup = await authenticator.identify(request)
    if lookup is None:
        raise AuthorizationError("Not authenticated", 401)

    workspace_uuid = request.path_params.get(WORKSPACE_PARAM) or request.headers.get(
        WORKSPACE_HEADER
    )
    context = await authenticator.authenticate(lookup, workspace_uuid)

    request.state.user = context.user
    request.state.workspace = context.workspace
    request.state.auth_context = context
    return context


async def anonymous(request: Request) -> None:
    """Context dependency of routes registered with ``authenticate=False``."""
    return None
