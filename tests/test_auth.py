"""Tests for accounts, tokens and the request auth context."""

import time
from unittest.mock import patch

import pytest

from simroom import auth, storage
from simroom.auth import AuthContext, create_token, log_in, sign_up, verify_token
from simroom.errors import AuthError


def test_sign_up_hashes_password():
    user = sign_up("Ann@Example.com", "secret1")
    assert user.email == "ann@example.com"
    assert user.password_hash != "secret1"
    assert user.role == "user"
    assert storage.find_user_by_email("ANN@example.com").id == user.id


def test_duplicate_email_rejected():
    sign_up("ann@example.com", "secret1")
    with pytest.raises(AuthError, match="already exists"):
        sign_up("ann@example.com", "other12")


def test_short_password_rejected():
    with pytest.raises(AuthError):
        sign_up("ann@example.com", "123")


def test_admin_emails_get_admin_role():
    settings = auth.get_settings().model_copy(update={"admin_emails": ["boss@example.com"]})
    with patch("simroom.auth.get_settings", return_value=settings):
        assert sign_up("boss@example.com", "secret1").role == "admin"


def test_log_in_returns_valid_token():
    user = sign_up("ann@example.com", "secret1")
    logged_in, token = log_in("ann@example.com", "secret1")
    assert logged_in.id == user.id
    assert verify_token(token) == user.id


def test_wrong_password():
    sign_up("ann@example.com", "secret1")
    with pytest.raises(AuthError):
        log_in("ann@example.com", "wrong!!")


def test_tampered_token_rejected():
    token = create_token("user-1")
    encoded, sig = token.rsplit(".", 1)
    assert verify_token(f"{encoded}.{'0' * len(sig)}") is None
    assert verify_token("garbage") is None
    assert verify_token("") is None


def test_expired_token_rejected():
    token = create_token("user-1")
    with patch("simroom.auth.time.time", return_value=time.time() + auth.TOKEN_MAX_AGE + 10):
        assert verify_token(token) is None


def test_context_opens_and_closes():
    user = sign_up("ann@example.com", "secret1")
    ctx = AuthContext()
    ctx.open(create_token(user.id))
    assert ctx.user.id == user.id
    assert ctx.is_admin is False
    ctx.close()
    assert ctx.user is None


def test_context_without_token_is_anonymous():
    ctx = AuthContext()
    ctx.open(None)
    assert ctx.user is None
    assert ctx.role is None
