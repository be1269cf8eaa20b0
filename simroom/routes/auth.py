"""Sign-up, login, logout and current-user endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from simroom.auth import AuthContext, auth_context, log_in, require_user, sign_up
from simroom.errors import AuthError
from simroom.models import User

from .models import Credentials

router = APIRouter(prefix="/auth")


def _public(user: User) -> dict:
    return {"id": user.id, "email": user.email, "role": user.role}


@router.post("/signup", status_code=201)
async def signup(body: Credentials):
    try:
        user = sign_up(body.email, body.password)
    except AuthError as e:
        raise HTTPException(400, str(e))
    _, token = log_in(body.email, body.password)
    return {"user": _public(user), "token": token}


@router.post("/login")
async def login(body: Credentials):
    try:
        user, token = log_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(401, str(e))
    return {"user": _public(user), "token": token}


@router.post("/logout")
async def logout(ctx: AuthContext = Depends(auth_context)):
    """Tokens are stateless; the client drops its copy."""
    return {"ok": True, "was_logged_in": ctx.user is not None}


@router.get("/me")
async def me(user: User = Depends(require_user)):
    return _public(user)
