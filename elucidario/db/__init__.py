"""Graph store access: connection pool, query builder and execution engine."""

from .cypher import Cypher
from .graph import Graph, GraphTransaction
from .types import CypherQuery, PropertyConstraint, QueryRunner

__all__ = [
    "Cypher",
    "CypherQuery",
    "Graph",
    "GraphTransaction",
    "PropertyConstraint",
    "QueryRunner",
]
