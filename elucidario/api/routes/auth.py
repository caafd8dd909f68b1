"""Login endpoint issuing bearer tokens."""

from fastapi import APIRouter
from pydantic import BaseModel
from starlette.requests import Request
from starlette.responses import Response

from elucidario.api.controller import Controller, error_response
from elucidario.api.dependencies import get_core

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=None)
async def login(request: Request, credentials: LoginRequest) -> Response:
    """Exchange email and password for an access token."""
    try:
        token = await get_core(request).authenticator.login(
            credentials.email, credentials.password
        )
    except Exception as exc:
        return error_response(exc)
    return Controller.respond(TokenResponse(access_token=token).model_dump())
