from elucidario.api.router import EntityRouter, RouteOptions
from elucidario.services import UserService

users = EntityRouter("users", UserService)
router = users.register_routes({"post": RouteOptions(authenticate=False, summary="Sign up")})
