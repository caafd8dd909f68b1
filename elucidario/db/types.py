"""Types shared by the graph engine, the query builder and the query objects."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

Row = dict[str, Any]
ResultMapper = Callable[[list[Row]], T]


@dataclass(frozen=True)
class PropertyConstraint:
    """``property`` must be unique across nodes carrying any of ``labels``."""

    name: str
    labels: tuple[str, ...]
    property: str

    def __init__(self, name: str, labels: Sequence[str] | str, property: str):
        object.__setattr__(self, "name", name)
        object.__setattr__(
            self, "labels", (labels,) if isinstance(labels, str) else tuple(labels)
        )
        object.__setattr__(self, "property", property)

    @property
    def key(self) -> tuple[tuple[str, ...], str]:
        return (tuple(sorted(self.labels)), self.property)


@dataclass(frozen=True)
class CypherQuery:
    """Parameterized query text plus the column names of its final RETURN."""

    text: str
    params: dict[str, Any] = field(default_factory=dict)
    columns: tuple[str, ...] = ()


class QueryRunner(Protocol):
    """Anything that executes a built query: the engine itself or an open transaction."""

    async def run(self, query: CypherQuery, map_result: ResultMapper[T]) -> T:
        """Execute ``query`` and return ``map_result`` applied to its rows."""
        ...
