"""User accounts."""

from simroom.models import User

from .core import get_row, insert_row, select_rows


def get_user(user_id: str) -> User | None:
    row = get_row("users", user_id)
    return User.model_validate(row) if row else None


def find_user_by_email(email: str) -> User | None:
    rows = select_rows("users", email=email.strip().lower())
    return User.model_validate(rows[0]) if rows else None


def create_user(user: User) -> User:
    user.email = user.email.strip().lower()
    insert_row("users", user.model_dump(mode="json"))
    return user
