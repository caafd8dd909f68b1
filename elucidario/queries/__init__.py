"""Per-entity query objects."""

from .base import AbstractQuery, ListParams
from .config import ConfigQuery
from .history import HistoryQuery
from .membership import MembershipQuery
from .user import UserQuery
from .workspace import WorkspaceQuery

__all__ = [
    "AbstractQuery",
    "ConfigQuery",
    "HistoryQuery",
    "ListParams",
    "MembershipQuery",
    "UserQuery",
    "WorkspaceQuery",
]
