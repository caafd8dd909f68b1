"""Resource routers mounted under ``/{api_prefix}/{api_version}``."""

from fastapi import APIRouter

from . import auth, config, members, users, workspaces


def api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(auth.router)
    router.include_router(config.router)
    router.include_router(users.router)
    router.include_router(workspaces.router)
    router.include_router(members.router)
    return router
