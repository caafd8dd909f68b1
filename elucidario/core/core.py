"""The application's dependency container.

``create_core()`` runs the registration phase: every model contributes its
constraints, every service its authorization rules, then optional plugins add
their own hooks. The registry is frozen before the Core is returned, so request
handling can only read it.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import asyncpg

from elucidario.application.authentication import Authenticator
from elucidario.application.authorization import Authorization
from elucidario.application.validator import Validator
from elucidario.core.settings import Settings, get_settings
from elucidario.db.cypher import Cypher
from elucidario.db.graph import Graph
from elucidario.hooks import HookRegistry
from elucidario.models import MODELS
from elucidario.services import SERVICES

logger = logging.getLogger(__name__)

Plugin = Callable[[HookRegistry], None]


@dataclass
class Core:
    settings: Settings
    hooks: HookRegistry
    cypher: Cypher
    graph: Graph
    validator: Validator
    authorization: Authorization
    authenticator: Authenticator


def create_core(
    settings: Settings | None = None,
    plugins: Iterable[Plugin] = (),
    pool: asyncpg.Pool | None = None,
) -> Core:
    """Build and wire every collaborator of one application instance."""
    settings = settings or get_settings()

    hooks = HookRegistry()
    for model in MODELS:
        model.register(hooks)
    Authorization.register(hooks)
    Authenticator.register(hooks)
    for service in SERVICES:
        service.register(hooks)
    for plugin in plugins:
        plugin(hooks)
    hooks.freeze()

    cypher = Cypher()
    graph = Graph(hooks, cypher, settings.active_graph, pool=pool)

    logger.debug("Core created for graph '%s'", settings.active_graph)
    return Core(
        settings=settings,
        hooks=hooks,
        cypher=cypher,
        graph=graph,
        validator=Validator(),
        authorization=Authorization(hooks),
        authenticator=Authenticator(graph, hooks),
    )
