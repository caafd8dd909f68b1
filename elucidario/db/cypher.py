"""Fluent builder for openCypher statements.

Query objects compose a clause tree with the primitives exposed by ``Cypher``
and call ``build()`` to obtain a ``CypherQuery``. Values never reach the query
text: every value becomes a ``$paramN`` placeholder and is returned in the
parameter map. Anonymous nodes and relationships are named ``this0, this1, ...``
in render order, so the same tree always renders the same text.
"""

import json
import re
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal as TypingLiteral

from elucidario.db.types import CypherQuery

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Direction = TypingLiteral["left", "right", "undirected"]
SortOrder = TypingLiteral["ASC", "DESC"]


def identifier(value: str, kind: str = "identifier") -> str:
    """Validate a label, relationship type, variable or property key."""
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid Cypher {kind}: {value!r}")
    return value


class Environment:
    """Naming state of a single ``build()`` call."""

    def __init__(self) -> None:
        self.params: dict[str, Any] = {}
        # Keyed by id() and holding the object, so an id is never recycled mid-build
        self._names: dict[int, tuple["Reference", str]] = {}
        self._param_names: dict[int, tuple["Param", str]] = {}

    def name_for(self, ref: "Reference") -> str:
        if ref.name is not None:
            return ref.name
        key = id(ref)
        if key not in self._names:
            self._names[key] = (ref, f"this{len(self._names)}")
        return self._names[key][1]

    def param(self, param: "Param") -> str:
        key = id(param)
        if key not in self._param_names:
            name = f"param{len(self._param_names)}"
            self._param_names[key] = (param, name)
            self.params[name] = param.value
        return f"${self._param_names[key][1]}"


class Expr:
    def render(self, env: Environment) -> str:
        raise NotImplementedError


def _expr(value: Any) -> Expr:
    return value if isinstance(value, Expr) else Param(value)


class Param(Expr):
    def __init__(self, value: Any):
        self.value = value

    def render(self, env: Environment) -> str:
        return env.param(self)


class Literal(Expr):
    """A constant rendered into the text; only for values chosen by code, never user input."""

    def __init__(self, value: str | int | float | bool | None):
        if isinstance(value, float) and value != value:
            raise ValueError("NaN cannot be rendered as a Cypher literal")
        self.value = value

    def render(self, env: Environment) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, int | float):
            return repr(self.value)
        return "'" + json.dumps(self.value)[1:-1].replace("'", "\\'") + "'"


class Reference(Expr):
    def __init__(self, name: str | None = None):
        self.name = identifier(name, "variable") if name is not None else None

    def render(self, env: Environment) -> str:
        return env.name_for(self)

    def property(self, key: str) -> "PropertyRef":
        return PropertyRef(self, key)


class Node(Reference):
    pass


class NamedNode(Node):
    def __init__(self, name: str):
        super().__init__(name)


class Relationship(Reference):
    pass


class NamedRelationship(Relationship):
    def __init__(self, name: str):
        super().__init__(name)


class PropertyRef(Expr):
    def __init__(self, ref: Reference, key: str):
        self.ref = ref
        self.key = identifier(key, "property key")

    def render(self, env: Environment) -> str:
        return f"{self.ref.render(env)}.{self.key}"


class Function(Expr):
    def __init__(self, name: str, *args: Expr):
        self.name = identifier(name, "function name")
        self.args = args

    def render(self, env: Environment) -> str:
        return f"{self.name}({', '.join(a.render(env) for a in self.args)})"


class Comparison(Expr):
    def __init__(self, left: Expr, operator: str, right: Any):
        self.left = left
        self.operator = operator
        self.right = _expr(right)

    def render(self, env: Environment) -> str:
        return f"{self.left.render(env)} {self.operator} {self.right.render(env)}"


def _labels(labels: str | Iterable[str] | None) -> str:
    if labels is None:
        return ""
    if isinstance(labels, str):
        labels = [labels]
    return "".join(f":{identifier(label, 'label')}" for label in labels)


def _property_map(properties: Mapping[str, Any] | None) -> dict[str, Expr]:
    """Validated keys mapped to expressions; None values are left out."""
    return {
        identifier(key, "property key"): _expr(value)
        for key, value in (properties or {}).items()
        if value is not None
    }


def _properties(properties: dict[str, Expr], env: Environment) -> str:
    if not properties:
        return ""
    entries = ", ".join(f"{key}: {value.render(env)}" for key, value in properties.items())
    return f" {{{entries}}}"


class _NodeElement:
    def __init__(
        self,
        node: Reference,
        labels: str | Iterable[str] | None,
        properties: Mapping[str, Any] | None,
    ):
        self.node = node
        self.labels = labels
        self.properties = _property_map(properties)

    def render(self, env: Environment) -> str:
        return f"({self.node.render(env)}{_labels(self.labels)}{_properties(self.properties, env)})"


class _RelationshipElement:
    def __init__(
        self,
        rel: Reference,
        type: str | None,
        direction: Direction,
        properties: Mapping[str, Any] | None,
    ):
        self.rel = rel
        self.type = identifier(type, "relationship type") if type else None
        self.direction = direction
        self.properties = _property_map(properties)

    def render(self, env: Environment) -> str:
        rel_type = f":{self.type}" if self.type else ""
        body = f"[{self.rel.render(env)}{rel_type}{_properties(self.properties, env)}]"
        if self.direction == "left":
            return f"<-{body}-"
        if self.direction == "right":
            return f"-{body}->"
        return f"-{body}-"


class Pattern:
    """``(a:Label {..})-[r:TYPE]->(b)`` built link by link."""

    def __init__(
        self,
        node: Reference,
        labels: str | Iterable[str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ):
        self._elements: list[_NodeElement | _RelationshipElement] = [
            _NodeElement(node, labels, properties)
        ]
        self._pending: _RelationshipElement | None = None

    def related(
        self,
        rel: Reference | None = None,
        type: str | None = None,
        direction: Direction = "right",
        properties: Mapping[str, Any] | None = None,
    ) -> "Pattern":
        if self._pending is not None:
            raise ValueError("Pattern.related() must be followed by Pattern.to()")
        self._pending = _RelationshipElement(
            rel if rel is not None else Relationship(), type, direction, properties
        )
        return self

    def to(
        self,
        node: Reference | None = None,
        labels: str | Iterable[str] | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "Pattern":
        if self._pending is None:
            self._pending = _RelationshipElement(Relationship(), None, "right", None)
        self._elements.append(self._pending)
        self._elements.append(
            _NodeElement(node if node is not None else Node(), labels, properties)
        )
        self._pending = None
        return self

    def render(self, env: Environment) -> str:
        if self._pending is not None:
            raise ValueError("Pattern ends with a dangling relationship")
        return "".join(element.render(env) for element in self._elements)


Projection = Expr | tuple[Expr, str]


def _projection(column: Projection, env: Environment) -> tuple[str, str]:
    """Render one projection and return ``(text, column name)``."""
    if isinstance(column, tuple):
        expr, alias = column
        alias = identifier(alias, "alias")
        return f"{expr.render(env)} AS {alias}", alias
    if isinstance(column, Reference):
        name = column.render(env)
        return name, name
    raise ValueError("Projected expressions other than variables need an alias")


class Clause:
    """Base of every renderable statement part."""

    def render(self, env: Environment) -> str:
        raise NotImplementedError

    def columns(self, env: Environment) -> tuple[str, ...]:
        return ()

    def build(self) -> CypherQuery:
        env = Environment()
        text = self.render(env)
        return CypherQuery(text=text, params=dict(env.params), columns=self.columns(env))


class Return(Clause):
    keyword = "RETURN"

    def __init__(self, *columns: Projection | str):
        if not columns:
            raise ValueError(f"{self.keyword} needs at least one column")
        self._columns = columns
        self._order: list[tuple[Expr, SortOrder]] = []
        self._skip: int | None = None
        self._limit: int | None = None

    def order_by(self, *items: Expr | tuple[Expr, SortOrder]) -> "Return":
        for item in items:
            expr, direction = item if isinstance(item, tuple) else (item, "ASC")
            if direction not in ("ASC", "DESC"):
                raise ValueError(f"Invalid sort direction: {direction!r}")
            self._order.append((expr, direction))
        return self

    def skip(self, value: int) -> "Return":
        self._skip = _non_negative(value, "SKIP")
        return self

    def limit(self, value: int) -> "Return":
        self._limit = _non_negative(value, "LIMIT")
        return self

    def _render_columns(self, env: Environment) -> list[tuple[str, str]]:
        return [("*", "*") if c == "*" else _projection(c, env) for c in self._columns]  # type: ignore[arg-type]

    def render(self, env: Environment) -> str:
        parts = [f"{self.keyword} " + ", ".join(t for t, _ in self._render_columns(env))]
        if self._order:
            parts.append(
                "ORDER BY "
                + ", ".join(f"{e.render(env)} {d}" for e, d in self._order)
            )
        if self._skip is not None:
            parts.append(f"SKIP {self._skip}")
        if self._limit is not None:
            parts.append(f"LIMIT {self._limit}")
        return " ".join(parts)

    def columns(self, env: Environment) -> tuple[str, ...]:
        return tuple(name for _, name in self._render_columns(env))


def _non_negative(value: int, keyword: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{keyword} expects a non-negative integer, got {value!r}")
    return value


class _PatternClause(Clause):
    """MATCH / OPTIONAL MATCH / CREATE followed by its sub-clauses."""

    keyword = ""

    def __init__(self, *patterns: Pattern):
        if not patterns:
            raise ValueError(f"{self.keyword} needs at least one pattern")
        self.patterns = patterns
        self._where: list[Expr] = []
        self._set: list[tuple[PropertyRef, Expr]] = []
        self._delete: list[Reference] = []
        self._detach = False
        self._tail: Return | None = None

    def where(
        self, ref: Reference | Expr, properties: Mapping[str, Any] | None = None
    ) -> "_PatternClause":
        """Add ``ref.key = value`` predicates, or a ready-made predicate expression."""
        if properties is None:
            self._where.append(ref)
            return self
        if not isinstance(ref, Reference):
            raise TypeError("where() with properties needs a node or relationship")
        for key, value in properties.items():
            self._where.append(Comparison(ref.property(key), "=", value))
        return self

    def set(self, *assignments: tuple[PropertyRef, Any]) -> "_PatternClause":
        for target, value in assignments:
            self._set.append((target, _expr(value)))
        return self

    def delete(self, *refs: Reference) -> "_PatternClause":
        self._delete.extend(refs)
        return self

    def detach_delete(self, *refs: Reference) -> "_PatternClause":
        self._detach = True
        return self.delete(*refs)

    def return_(self, *columns: Projection | str) -> "_Tail":
        tail = Return(*columns)
        self._tail = tail
        return _Tail(self, tail)

    def render(self, env: Environment) -> str:
        parts = [f"{self.keyword} " + ", ".join(p.render(env) for p in self.patterns)]
        if self._where:
            parts.append("WHERE " + " AND ".join(p.render(env) for p in self._where))
        if self._set:
            parts.append(
                "SET " + ", ".join(f"{t.render(env)} = {v.render(env)}" for t, v in self._set)
            )
        if self._delete:
            keyword = "DETACH DELETE" if self._detach else "DELETE"
            parts.append(f"{keyword} " + ", ".join(r.render(env) for r in self._delete))
        if self._tail is not None:
            parts.append(self._tail.render(env))
        return " ".join(parts)

    def columns(self, env: Environment) -> tuple[str, ...]:
        return self._tail.columns(env) if self._tail is not None else ()


class _Tail(Clause):
    """A RETURN chained onto a pattern clause; building it builds the whole chain."""

    def __init__(self, head: _PatternClause, tail: Return):
        self._head = head
        self._tail = tail

    def order_by(self, *items: Expr | tuple[Expr, SortOrder]) -> "_Tail":
        self._tail.order_by(*items)
        return self

    def skip(self, value: int) -> "_Tail":
        self._tail.skip(value)
        return self

    def limit(self, value: int) -> "_Tail":
        self._tail.limit(value)
        return self

    def render(self, env: Environment) -> str:
        return self._head.render(env)

    def columns(self, env: Environment) -> tuple[str, ...]:
        return self._head.columns(env)


class Match(_PatternClause):
    keyword = "MATCH"


class OptionalMatch(_PatternClause):
    keyword = "OPTIONAL MATCH"


class Create(_PatternClause):
    keyword = "CREATE"


class Concat(Clause):
    def __init__(self, *clauses: Clause):
        self.clauses = clauses

    def render(self, env: Environment) -> str:
        return "\n".join(clause.render(env) for clause in self.clauses)

    def columns(self, env: Environment) -> tuple[str, ...]:
        for clause in reversed(self.clauses):
            columns = clause.columns(env)
            if columns:
                return columns
        return ()


class Cypher:
    """Facade handing the clause constructors to query-building callbacks."""

    Node = Node
    NamedNode = NamedNode
    Relationship = Relationship
    NamedRelationship = NamedRelationship
    Param = Param
    Literal = Literal
    Pattern = Pattern
    Match = Match
    OptionalMatch = OptionalMatch
    Create = Create
    Return = Return

    def builder(self, callback: "Callable[[Cypher], Clause]") -> Clause:
        """Build a clause tree with ``callback``; call ``.build()`` on the result."""
        return callback(self)

    @staticmethod
    def concat(*clauses: Clause) -> Concat:
        return Concat(*clauses)

    @staticmethod
    def count(expr: Expr) -> Function:
        return Function("count", expr)

    @staticmethod
    def collect(expr: Expr) -> Function:
        return Function("collect", expr)

    @staticmethod
    def id(expr: Expr) -> Function:
        return Function("id", expr)

    @staticmethod
    def eq(left: Expr, right: Any) -> Comparison:
        return Comparison(left, "=", right)
