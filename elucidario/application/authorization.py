"""Aggregates ability rules from the ``authorization.rules`` filter."""

import logging

from elucidario.application.ability import ALL, MANAGE, Ability, Rule
from elucidario.core.schemas import DEFAULT_ROLES, AuthContext
from elucidario.hooks import AUTHORIZATION_ROLES, AUTHORIZATION_RULES, HookRegistry

logger = logging.getLogger(__name__)


def superuser_rules(rules: list[Rule], context: AuthContext) -> list[Rule]:
    if context.is_superuser:
        return [*rules, Rule(MANAGE, ALL)]
    return rules


class Authorization:
    """Builds a fresh Ability for every request context."""

    def __init__(self, hooks: HookRegistry):
        self.hooks = hooks

    @staticmethod
    def register(hooks: HookRegistry) -> None:
        hooks.add_filter(AUTHORIZATION_RULES, superuser_rules, priority=0)

    def get_roles(self) -> list[str]:
        """Workspace roles, extensible through ``authorization.roles``."""
        return self.hooks.apply_filter(AUTHORIZATION_ROLES, list(DEFAULT_ROLES))

    def permissions(self, context: AuthContext | None) -> Ability:
        """Compile the rules granted to ``context``; no context grants nothing."""
        if context is None:
            return Ability()

        rules = self.hooks.apply_filter(AUTHORIZATION_RULES, [], context)
        if not isinstance(rules, list):
            raise TypeError("The filter 'authorization.rules' must return a list of rules.")

        logger.debug(
            "Compiled %d rules for user %s with role %s",
            len(rules),
            context.user_uuid,
            context.role,
        )
        return Ability(rules)
