"""Concluding a chat: terminal status, notice message, path progress."""

import logging

from simroom import paths, storage
from simroom.models import ChatMessage, ChatStatus

from .session import ChatSession

logger = logging.getLogger(__name__)

COMPLETION_NOTICE = "Simulation completed! Every keypoint was covered."
FAILURE_NOTICE = (
    "Simulation failed: the maximum number of interactions ({limit}) was reached "
    "before every keypoint was covered."
)


def persist(session: ChatSession) -> None:
    """Write the full message array. Failures are logged; the session keeps its state."""
    try:
        storage.save_messages(session.chat_id, session.messages)
    except (OSError, KeyError) as e:
        logger.warning("Saving messages for chat %s failed: %s", session.chat_id, e)


def conclude(session: ChatSession, status: ChatStatus) -> ChatMessage | None:
    """Move an active chat to `completed` or `failed`.

    Appends the notice message, persists, and updates linked path progress.
    Returns the notice, or None when the chat had already ended (status
    never reverts).
    """
    if status == "active":
        raise ValueError("conclude() needs a terminal status")
    if session.status != "active":
        return None

    session.status = status
    session.chat.status = status
    if status == "completed":
        notice = ChatMessage(role="system", content=COMPLETION_NOTICE)
    else:
        notice = ChatMessage(
            role="system",
            content=FAILURE_NOTICE.format(limit=session.simulation.max_interactions),
        )
    session.messages.append(notice)
    persist(session)

    try:
        storage.set_status(session.chat_id, status)
    except OSError as e:
        logger.warning("Saving status for chat %s failed: %s", session.chat_id, e)

    if session.chat.path is not None:
        try:
            paths.record_outcome(session.chat.path, completed=status == "completed")
        except OSError as e:
            logger.warning("Updating path progress for chat %s failed: %s", session.chat_id, e)

    logger.info("chat %s %s after %d replies", session.chat_id, status, session.assistant_count())
    return notice
