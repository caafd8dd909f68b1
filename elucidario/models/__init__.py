"""Entity models (schemas and constraints) of every entity type."""

from .base import EntityInput, EntityModel, EntityRead, unique_constraints
from .config import Config
from .history import HistoryEvent
from .membership import Membership
from .user import User
from .workspace import Workspace

MODELS: list[type[EntityModel]] = [User, Workspace, Membership, Config, HistoryEvent]

__all__ = [
    "Config",
    "EntityInput",
    "EntityModel",
    "EntityRead",
    "HistoryEvent",
    "MODELS",
    "Membership",
    "User",
    "Workspace",
    "unique_constraints",
]
