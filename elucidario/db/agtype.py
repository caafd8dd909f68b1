"""Decoding of Apache AGE ``agtype`` values returned as text."""

import json
import re
from typing import Any, cast

# Type annotations follow a closing brace/bracket or a number; anchoring on them
# keeps string values that happen to contain "::vertex" intact.
_ANNOTATION = re.compile(r"(?<=[}\]\d])::(vertex|edge|path|numeric)")


def clean_agtype_string(agtype_str: str) -> str:
    """Remove AGE type annotations like ::vertex and ::edge."""
    return _ANNOTATION.sub("", agtype_str)


def parse_agtype(value: str | None) -> Any:
    """Turn one agtype column into plain Python data."""
    if value is None:
        return None
    return json.loads(clean_agtype_string(value))


def is_vertex(value: Any) -> bool:
    return isinstance(value, dict) and {"id", "label", "properties"} <= value.keys()


def parse_node(value: Any) -> dict[str, Any] | None:
    """Flatten a vertex into its properties plus a ``type`` taken from its label."""
    if value is None:
        return None
    if not is_vertex(value):
        raise ValueError(f"Expected an AGE vertex, got {type(value).__name__}")
    properties = cast(dict[str, Any], value["properties"] or {})
    return {"type": value["label"], **properties}


def parse_relationship(value: Any) -> dict[str, Any] | None:
    """Return the properties of an edge."""
    if value is None:
        return None
    if not isinstance(value, dict) or "properties" not in value:
        raise ValueError(f"Expected an AGE edge, got {type(value).__name__}")
    return dict(cast(dict[str, Any], value["properties"] or {}))
