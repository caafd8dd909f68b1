"""Per-entity services."""

from .base import (
    AbstractService,
    Creatable,
    CreateMixin,
    Deletable,
    DeleteMixin,
    Listable,
    ListMixin,
    Readable,
    ReadMixin,
    Updatable,
    UpdateMixin,
)
from .config import ConfigService
from .membership import MembershipService
from .user import UserService
from .workspace import WorkspaceService

SERVICES: list[type[AbstractService]] = [
    UserService,
    WorkspaceService,
    MembershipService,
    ConfigService,
]

__all__ = [
    "AbstractService",
    "ConfigService",
    "Creatable",
    "CreateMixin",
    "Deletable",
    "DeleteMixin",
    "Listable",
    "ListMixin",
    "MembershipService",
    "Readable",
    "ReadMixin",
    "SERVICES",
    "Updatable",
    "UpdateMixin",
    "UserService",
    "WorkspaceService",
]
