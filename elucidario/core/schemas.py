import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Role(str, enum.Enum):
    """Built-in roles. Workspace roles are extensible through ``authorization.roles``."""

    SYSADMIN = "sysadmin"
    ADMIN = "admin"
    EDITOR = "editor"
    ASSISTANT = "assistant"
    RESEARCHER = "researcher"


SUPERUSER_ROLE = Role.SYSADMIN.value

DEFAULT_ROLES: list[str] = [
    Role.ADMIN.value,
    Role.EDITOR.value,
    Role.ASSISTANT.value,
    Role.RESEARCHER.value,
]


class AuthContext(BaseModel):
    """The acting user, their role and the optional workspace scope of one request."""

    model_config = ConfigDict(frozen=True)

    user: dict[str, Any]
    role: str
    workspace: dict[str, Any] | None = None

    @property
    def user_uuid(self) -> str:
        return str(self.user["uuid"])

    @property
    def workspace_uuid(self) -> str | None:
        if self.workspace is None:
            return None
        return str(self.workspace["uuid"])

    @property
    def is_superuser(self) -> bool:
        return self.role == SUPERUSER_ROLE


# Path parameter naming the workspace a request is scoped to.
WORKSPACE_PARAM = "workspaceUUID"
