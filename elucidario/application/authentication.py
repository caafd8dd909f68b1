"""Authentication: resolve the acting user and role of a request.

Strategies registered on ``auth.strategies`` turn a request into a user lookup
(``{"uuid": ...}``); the first strategy returning one wins. The Authenticator
then resolves that user in the graph and decides the role of the request:
the membership role inside a workspace, ``sysadmin`` for global requests.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.requests import Request

from elucidario.core.errors import AuthorizationError
from elucidario.core.schemas import SUPERUSER_ROLE, AuthContext
from elucidario.core.security import create_access_token, verify_password, verify_token
from elucidario.db.graph import Graph
from elucidario.hooks import AUTH_STRATEGIES, HookRegistry
from elucidario.models import User, Workspace
from elucidario.queries import MembershipQuery, UserQuery, WorkspaceQuery

logger = logging.getLogger(__name__)

AuthStrategy = Callable[[Request], Awaitable[dict[str, Any] | None]]


async def bearer_token_strategy(request: Request) -> dict[str, Any] | None:
    """Read ``Authorization: Bearer <jwt>``; the token subject is the user uuid."""
    header = request.headers.get("Authorization")
    if not header:
        return None

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None

    payload = verify_token(token.strip())
    user_uuid = payload.get("sub")
    if not user_uuid:
        raise AuthorizationError("Token missing required user information", 401)
    return {"uuid": str(user_uuid)}


def add_bearer_strategy(strategies: list[AuthStrategy]) -> list[AuthStrategy]:
    return [*strategies, bearer_token_strategy]


class Authenticator:
    def __init__(self, graph: Graph, hooks: HookRegistry):
        self.hooks = hooks
        self.users = UserQuery(graph)
        self.workspaces = WorkspaceQuery(graph)
        self.memberships = MembershipQuery(graph)

    @staticmethod
    def register(hooks: HookRegistry) -> None:
        hooks.add_filter(AUTH_STRATEGIES, add_bearer_strategy)

    async def identify(self, request: Request) -> dict[str, Any] | None:
        """User lookup of the first strategy that recognizes the request."""
        for strategy in self.hooks.apply_filter(AUTH_STRATEGIES, []):
            lookup = await strategy(request)
            if lookup:
                return lookup
        return None

    async def authenticate(
        self, user_lookup: dict[str, Any], workspace_uuid: str | None = None
    ) -> AuthContext:
        """Build the AuthContext of a request.

        Raises:
            AuthorizationError: 401 when the user is unknown, is not a member
                of the workspace, or makes a global request without being a
                sysadmin
        """
        node = await self.users.find_one(user_lookup)
        if node is None:
            raise AuthorizationError("User not found.", 401)

        user = User.serialize(node)
        is_sysadmin = await self.users.is_sysadmin(user["uuid"])

        if workspace_uuid is None:
            if not is_sysadmin:
                raise AuthorizationError("A workspace is required for this request.", 401)
            return AuthContext(user=user, role=SUPERUSER_ROLE)

        workspace_node = await self.workspaces.read(workspace_uuid)
        if workspace_node is None:
            raise AuthorizationError("Workspace not found.", 401)
        workspace = Workspace.serialize(workspace_node)

        if is_sysadmin:
            return AuthContext(user=user, role=SUPERUSER_ROLE, workspace=workspace)

        membership = await self.memberships.find_one(
            {"user_uuid": user["uuid"], "workspace_uuid": workspace["uuid"]}
        )
        if membership is None:
            raise AuthorizationError("User is not a member of this workspace.", 401)

        return AuthContext(user=user, role=membership["role"], workspace=workspace)

    async def login(self, email: str, password: str) -> str:
        """Check the credentials and return a signed access token."""
        user = await self.users.find_one({"email": email})
        hashed = user.get("password") if user else None
        if not hashed or not verify_password(password, hashed):
            logger.info("Failed login attempt for %s", email)
            raise AuthorizationError("Incorrect email or password", 401)

        return create_access_token({"sub": str(user["uuid"])})
