"""Ability rules and their evaluation.

A rule grants ``action`` on ``subject``, optionally only for instances whose
fields satisfy ``conditions``. Conditions use a small closed language:

- ``{"field": value}``: equality, or membership when the field holds a list
- ``{"field": {"$op": arg}}`` with ``$eq $ne $in $nin $gt $gte $lt $lte $exists``
- dotted paths (``"workspace.uuid"``) reach into nested mappings or attributes

Anything not granted by at least one rule is denied.
"""

import operator
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

MANAGE = "manage"
ALL = "all"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def get_field(instance: Any, path: str) -> Any:
    """Resolve a dotted path over mappings and attributes; ``MISSING`` when absent."""
    value = instance
    for part in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(part, MISSING)
        else:
            value = getattr(value, part, MISSING)
        if value is MISSING:
            return MISSING
    return value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, list | tuple | set | frozenset)


def _equals(value: Any, expected: Any) -> bool:
    if value is MISSING:
        return False
    if _is_sequence(value) and not _is_sequence(expected):
        return expected in value
    return value == expected


def _in(value: Any, options: Any) -> bool:
    if value is MISSING:
        return False
    if _is_sequence(value):
        return any(item in options for item in value)
    return value in options


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(value: Any, arg: Any) -> bool:
        if value is MISSING or value is None:
            return False
        try:
            return op(value, arg)
        except TypeError:
            return False

    return check


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": _equals,
    "$ne": lambda value, arg: not _equals(value, arg),
    "$in": _in,
    "$nin": lambda value, arg: not _in(value, arg),
    "$gt": _compare(operator.gt),
    "$gte": _compare(operator.ge),
    "$lt": _compare(operator.lt),
    "$lte": _compare(operator.le),
    "$exists": lambda value, arg: (value is not MISSING) == bool(arg),
}


def _is_operator_map(expected: Any) -> bool:
    return (
        isinstance(expected, Mapping)
        and bool(expected)
        and all(isinstance(key, str) and key.startswith("$") for key in expected)
    )


def check_conditions(conditions: Mapping[str, Any]) -> None:
    """Reject unknown operators when a rule is compiled instead of at evaluation."""
    for path, expected in conditions.items():
        if not isinstance(path, str) or not path:
            raise ValueError(f"Invalid condition field: {path!r}")
        if _is_operator_map(expected):
            unknown = set(expected) - OPERATORS.keys()
            if unknown:
                raise ValueError(f"Unknown condition operator(s): {', '.join(sorted(unknown))}")


def matches(conditions: Mapping[str, Any], instance: Any) -> bool:
    """True when ``instance`` satisfies every condition."""
    for path, expected in conditions.items():
        value = get_field(instance, path)
        if _is_operator_map(expected):
            if not all(OPERATORS[op](value, arg) for op, arg in expected.items()):
                return False
        elif not _equals(value, expected):
            return False
    return True


@dataclass(frozen=True)
class Rule:
    action: str
    subject: str
    conditions: Mapping[str, Any] | None = None

    def applies_to(self, action: str, subject: str) -> bool:
        return self.action in (action, MANAGE) and self.subject in (subject, ALL)


class Ability:
    """Compiled rule set of one request context."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self.rules: tuple[Rule, ...] = tuple(rules)
        for rule in self.rules:
            if not isinstance(rule, Rule):
                raise TypeError(f"Expected a Rule, got {type(rule).__name__}")
            if rule.conditions:
                check_conditions(rule.conditions)

    def rules_for(self, action: str, subject: str) -> list[Rule]:
        return [rule for rule in self.rules if rule.applies_to(action, subject)]

    def can(self, action: str, subject: str, instance: Any = None) -> bool:
        """Whether any rule grants ``action`` on ``subject``.

        Without an instance a rule counts regardless of its conditions; with
        one, its conditions must hold for the instance.
        """
        rules = self.rules_for(action, subject)
        if instance is None:
            return bool(rules)
        return any(
            not rule.conditions or matches(rule.conditions, instance) for rule in rules
        )

    def cannot(self, action: str, subject: str, instance: Any = None) -> bool:
        return not self.can(action, subject, instance)
