"""Chat rows: transcript, status and stored analysis."""

from datetime import datetime
from typing import Any

from simroom.models import Chat, ChatMessage, ChatStatus

from .core import delete_row, get_row, insert_row, read_table, update_row


def list_chats() -> list[Chat]:
    """All chats, newest first."""
    chats = [Chat.model_validate(r) for r in read_table("chats")]
    chats.sort(key=lambda c: c.created_at, reverse=True)
    return chats


def get_chat(chat_id: str) -> Chat | None:
    row = get_row("chats", chat_id)
    return Chat.model_validate(row) if row else None


def create_chat(chat: Chat) -> Chat:
    insert_row("chats", chat.model_dump(mode="json"))
    return chat


def save_messages(chat_id: str, messages: list[ChatMessage]) -> None:
    """Write the full message array back to the chat row."""
    if update_row("chats", chat_id, {"messages": [m.model_dump(mode="json") for m in messages]}) is None:
        raise KeyError(f"Chat {chat_id} not found")


def set_status(chat_id: str, status: ChatStatus) -> Chat | None:
    row = update_row("chats", chat_id, {"status": status})
    return Chat.model_validate(row) if row else None


def save_analysis(chat_id: str, result: dict[str, Any], updated_at: datetime) -> Chat | None:
    row = update_row(
        "chats", chat_id,
        {"analysis_result": result, "analysis_updated_at": updated_at.isoformat()},
    )
    return Chat.model_validate(row) if row else None


def delete_chat(chat_id: str) -> bool:
    return delete_row("chats", chat_id)
