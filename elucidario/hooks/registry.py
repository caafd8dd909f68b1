"""Priority-ordered extension points: filters transform a value, actions react.

A ``HookRegistry`` is built once at boot, filled during the model registration
phase and then frozen. Request handlers only ever call ``apply_filter`` and
``do_action``.
"""

import bisect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C", bound=Callable[..., Any])

DEFAULT_PRIORITY = 10

FilterCallback = Callable[..., Any]
ActionCallback = Callable[..., None]


@dataclass(frozen=True)
class FilterHook(Generic[T]):
    """Typed name of a filter; ``T`` is the accumulator every callback receives and returns."""

    name: str
    description: str = ""


@dataclass(frozen=True)
class ActionHook:
    """Typed name of an action."""

    name: str
    description: str = ""


@dataclass(frozen=True)
class HookRecord(Generic[C]):
    callback: C
    priority: int


def _hook_name(hook: FilterHook[Any] | ActionHook | str) -> str:
    return hook if isinstance(hook, str) else hook.name


class _HookTable(Generic[C]):
    """Named, append-only lists of hook records kept sorted by priority."""

    def __init__(self) -> None:
        self.hooks: dict[str, list[HookRecord[C]]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def add(self, name: str, callback: C, priority: int = DEFAULT_PRIORITY) -> None:
        """Register ``callback`` under ``name``.

        Lower priorities run first; equal priorities keep registration order.
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register hook '{name}': the registry is frozen after boot."
            )
        if not callable(callback):
            raise TypeError(f"Hook '{name}' callback must be callable")

        records = self.hooks.setdefault(name, [])
        # insort_right places ties after existing records with the same priority
        bisect.insort_right(
            records, HookRecord(callback, priority), key=lambda r: r.priority
        )

    def get(self, name: str) -> list[HookRecord[C]]:
        return list(self.hooks.get(name, ()))

    def __contains__(self, name: object) -> bool:
        return name in self.hooks


class Filters(_HookTable[FilterCallback]):
    def apply(self, name: str, value: Any, *args: Any) -> Any:
        """Fold ``value`` through every callback registered under ``name``."""
        records = self.hooks.get(name)
        if not records:
            return value

        acc = value
        for record in records:
            acc = record.callback(acc, *args)
        return acc


class Actions(_HookTable[ActionCallback]):
    def do(self, name: str, *args: Any) -> None:
        """Run every callback registered under ``name`` for its side effects."""
        for record in self.hooks.get(name, ()):
            record.callback(*args)


class HookRegistry:
    """Filters and actions of one application instance."""

    def __init__(self) -> None:
        self.filters = Filters()
        self.actions = Actions()

    @property
    def frozen(self) -> bool:
        return self.filters.frozen and self.actions.frozen

    def freeze(self) -> None:
        """End the registration phase; later registrations raise ``RuntimeError``."""
        self.filters.freeze()
        self.actions.freeze()
        logger.debug(
            "Hook registry frozen with %d filters and %d actions",
            len(self.filters.hooks),
            len(self.actions.hooks),
        )

    def add_filter(
        self,
        hook: FilterHook[T] | str,
        callback: Callable[..., T],
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self.filters.add(_hook_name(hook), callback, priority)

    def apply_filter(self, hook: FilterHook[T] | str, value: T, *args: Any) -> T:
        return self.filters.apply(_hook_name(hook), value, *args)

    def add_action(
        self,
        hook: ActionHook | str,
        callback: ActionCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self.actions.add(_hook_name(hook), callback, priority)

    def do_action(self, hook: ActionHook | str, *args: Any) -> None:
        self.actions.do(_hook_name(hook), *args)
