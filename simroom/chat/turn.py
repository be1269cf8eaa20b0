"""Turn orchestrator: runs one player turn end-to-end.

Turn flow:
  1. Append the player message (persisted immediately).
  2. Player keypoint evaluation, if a prompt and player keypoints exist.
     Completing the tracker here ends the chat as `completed`.
  3. Limit check: once the character has replied max_interactions times
     the chat ends as `failed` without another LLM call.
  4. Stream the character reply from [system prompt, player message].
  5. Character keypoint evaluation over the full reply (may complete).
  6. Mood evaluation, streamed; updates the running mood level.
  7. Turn boundary: reaching max_interactions replies fails the chat.

Every append or mutation of the message list is written back to storage as
the full array. Evaluation failures are logged and skipped; a failed reply
stream ends the turn with an error message in the transcript.

run_turn() is an async generator of TurnEvent. It validates and takes the
per-chat guard on the first __anext__, so callers can prime it to turn a
TurnRejected into an HTTP error before streaming anything.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Literal

from pydantic import BaseModel

from simroom.errors import ParseError, TurnRejected
from simroom.llm import ChatLLM, LLMError
from simroom.models import ChatMessage
from simroom.prompts import (
    build_system_prompt,
    mood_prompt_variables,
    system_prompt_variables,
)

from .completion import conclude, persist
from .guard import turns
from .keypoints import evaluate_keypoints, is_complete, merge_matches
from .mood import evaluate_mood
from .session import ChatSession

logger = logging.getLogger(__name__)

EventType = Literal[
    "message", "evaluation", "delta", "assistant",
    "mood_delta", "mood", "status", "error",
]

ASSISTANT_TEMPERATURE = 0.7


class TurnEvent(BaseModel):
    type: EventType
    data: dict[str, Any]


def _message_event(type: EventType, message: ChatMessage, **extra: Any) -> TurnEvent:
    data = {"message": message.model_dump(mode="json")}
    data.update(extra)
    return TurnEvent(type=type, data=data)


def _status_event(session: ChatSession, notice: ChatMessage) -> TurnEvent:
    return TurnEvent(type="status", data={
        "status": session.status,
        "notice": notice.model_dump(mode="json"),
        "tracker": dict(session.tracker),
    })


def _limit_reached(session: ChatSession) -> bool:
    return session.assistant_count() >= session.simulation.max_interactions


async def _evaluate_side(
    session: ChatSession,
    llm: ChatLLM,
    side: str,
    message: ChatMessage,
) -> TurnEvent | None:
    """Keypoint evaluation for one side; annotates `message` in place."""
    if side == "player":
        prompt = session.prompts.player_keypoints_evaluation_prompt
        keypoints = session.simulation.player_keypoints
    else:
        prompt = session.prompts.character_keypoints_evaluation_prompt
        keypoints = session.simulation.character_keypoints
    if not prompt.strip() or not keypoints:
        return None

    try:
        evaluation = await evaluate_keypoints(llm, prompt, side, message.content, keypoints)
    except (LLMError, ParseError) as e:
        logger.warning("%s keypoint evaluation failed for chat %s: %s", side, session.chat_id, e)
        return None

    merge_matches(session.tracker, evaluation.matched)
    message.evaluation = evaluation.raw
    message.matched_rules = evaluation.matched
    persist(session)
    return _message_event(
        "evaluation", message, side=side,
        matched=evaluation.matched, tracker=dict(session.tracker),
    )


async def run_turn(session: ChatSession, text: str, llm: ChatLLM) -> AsyncIterator[TurnEvent]:
    """Execute one player turn, yielding events in the order the UI shows them."""
    if not text.strip():
        raise TurnRejected("Message is empty")
    if session.status != "active":
        raise TurnRejected(f"This chat is already {session.status}")
    if not turns.acquire(session.chat_id):
        raise TurnRejected("A turn is already in progress for this chat")

    try:
        async for event in _turn(session, text, llm):
            yield event
    finally:
        turns.release(session.chat_id)


async def _turn(session: ChatSession, text: str, llm: ChatLLM) -> AsyncIterator[TurnEvent]:
    # 1. Player message
    player_msg = ChatMessage(role="user", content=text)
    session.messages.append(player_msg)
    persist(session)
    yield _message_event("message", player_msg)

    # 2. Player keypoints
    event = await _evaluate_side(session, llm, "player", player_msg)
    if event is not None:
        yield event
        if is_complete(session.tracker):
            notice = conclude(session, "completed")
            if notice is not None:
                yield _status_event(session, notice)
            return

    # 3. Limit check
    if _limit_reached(session):
        notice = conclude(session, "failed")
        if notice is not None:
            yield _status_event(session, notice)
        return

    # 4. Character reply
    variables = system_prompt_variables(
        session.simulation, session.character, session.mood,
        session.mood_level, session.messages[:-1],
    )
    system_prompt = build_system_prompt(session.prompts.system_prompt, variables)
    reply = ChatMessage(role="assistant", content="")
    session.messages.append(reply)
    try:
        async for chunk in llm.stream(
            "assistant",
            [{"role": "system", "content": system_prompt}, {"role": "user", "content": text}],
            temperature=ASSISTANT_TEMPERATURE,
        ):
            reply.content += chunk
            yield TurnEvent(type="delta", data={"text": chunk})
    except LLMError as e:
        logger.error("Reply stream failed for chat %s: %s", session.chat_id, e)
        # Partial replies are discarded; they never count as interactions.
        session.messages.remove(reply)
        error_msg = ChatMessage(role="system", content=f"Error: Could not get response. {e}")
        session.messages.append(error_msg)
        persist(session)
        yield _message_event("error", error_msg)
        return
    persist(session)
    yield _message_event("assistant", reply)

    # 5. Character keypoints
    event = await _evaluate_side(session, llm, "character", reply)
    if event is not None:
        yield event
        if is_complete(session.tracker):
            notice = conclude(session, "completed")
            if notice is not None:
                yield _status_event(session, notice)
            return

    # 6. Mood
    template = session.prompts.mood_evaluator_prompt
    if template.strip():
        mood_vars = mood_prompt_variables(
            session.character, session.mood, session.mood_level, text, reply.content,
        )
        try:
            async for progress in evaluate_mood(llm, template, mood_vars):
                if progress.result is None:
                    yield TurnEvent(type="mood_delta", data={"analysis": progress.analysis})
                    continue
                result = progress.result
                if result.new_mood_level is not None:
                    session.mood_level = result.new_mood_level
                reply.mood_level = session.mood_level
                reply.mood_change = result.mood_change
                reply.mood_analysis = result.analysis
                persist(session)
                yield _message_event("mood", reply, mood_level=session.mood_level)
        except (LLMError, ParseError) as e:
            logger.warning("Mood evaluation failed for chat %s: %s", session.chat_id, e)

    # 7. Turn boundary
    if _limit_reached(session):
        notice = conclude(session, "failed")
        if notice is not None:
            yield _status_event(session, notice)
