from elucidario.api.controller import ConfigController
from elucidario.api.router import EntityRouter, RouteOptions
from elucidario.services import ConfigService

config = EntityRouter("config", ConfigService, ConfigController)
# Setting up an installation happens before any user exists.
config.register_routes({"post": RouteOptions(authenticate=False)})
config.register_not_allowed_route("PUT", "DELETE")
router = config.router
