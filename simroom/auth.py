"""Accounts, session tokens and the per-request auth context.

AuthContext replaces app-wide ambient auth state: a FastAPI generator
dependency opens it from the bearer token at the start of a request and
closes it when the request ends. Route guards (require_user, require_admin)
take the context as a dependency.

Tokens are "<base64(user_id:timestamp)>.<hmac-sha256>" signed with
AUTH_SECRET and expire after 14 days.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time
from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from passlib.context import CryptContext

from simroom import storage
from simroom.config import get_settings
from simroom.errors import AuthError
from simroom.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TOKEN_MAX_AGE = 14 * 24 * 3600


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def _sign(payload: bytes) -> str:
    secret = get_settings().auth_secret.encode("utf-8")
    return hmac.new(secret, payload, hashlib.sha256).hexdigest()


def create_token(user_id: str) -> str:
    payload = f"{user_id}:{int(time.time())}".encode("utf-8")
    encoded = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
    return f"{encoded}.{_sign(payload)}"


def verify_token(token: str) -> str | None:
    """Return the user id of a valid, unexpired token; None otherwise."""
    if not token or "." not in token:
        return None
    try:
        encoded, sig = token.rsplit(".", 1)
        payload = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
        if not hmac.compare_digest(_sign(payload), sig):
            return None
        user_id, ts = payload.decode("utf-8").split(":", 1)
        if abs(time.time() - int(ts)) > TOKEN_MAX_AGE:
            return None
        return user_id
    except (ValueError, UnicodeDecodeError):
        return None


def sign_up(email: str, password: str) -> User:
    email = email.strip().lower()
    if not email or "@" not in email:
        raise AuthError("A valid email is required")
    if len(password) < 6:
        raise AuthError("Password must be at least 6 characters")
    if storage.find_user_by_email(email) is not None:
        raise AuthError("An account with this email already exists")
    role = "admin" if email in get_settings().admin_emails else "user"
    user = storage.create_user(User(email=email, password_hash=hash_password(password), role=role))
    logger.info("user %s signed up with role %s", user.id, role)
    return user


def log_in(email: str, password: str) -> tuple[User, str]:
    user = storage.find_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthError("Invalid email or password")
    return user, create_token(user.id)


class AuthContext:
    """The caller's identity for one request."""

    def __init__(self) -> None:
        self.user: User | None = None
        self._open = False

    @property
    def role(self) -> str | None:
        return self.user.role if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def open(self, token: str | None) -> None:
        """Resolve the session token, if any."""
        self._open = True
        user_id = verify_token(token) if token else None
        self.user = storage.get_user(user_id) if user_id else None

    def close(self) -> None:
        self.user = None
        self._open = False


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return None


def auth_context(request: Request) -> Iterator[AuthContext]:
    ctx = AuthContext()
    ctx.open(_bearer_token(request))
    try:
        yield ctx
    finally:
        ctx.close()


def require_user(ctx: AuthContext = Depends(auth_context)) -> User:
    if ctx.user is None:
        raise HTTPException(401, "Not authenticated")
    return ctx.user


def require_admin(ctx: AuthContext = Depends(auth_context)) -> User:
    if ctx.user is None:
        raise HTTPException(401, "Not authenticated")
    if not ctx.is_admin:
        raise HTTPException(403, "Admin role required")
    return ctx.user
