"""Chat endpoints: start, view, take turns (SSE), analyze, speak, delete."""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from simroom import storage
from simroom.auth import require_admin, require_user
from simroom.chat import analyze_chat, creations, load_session, run_turn
from simroom.chat.session import ChatSession
from simroom.errors import AnalysisError, ChatNotFound, ConfigurationError, TurnRejected
from simroom.llm import LLMError, client_for
from simroom.models import Chat, User

from .models import CreateChat, SpeechBody, TurnBody

logger = logging.getLogger(__name__)

router = APIRouter()

AUDIO_MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/pcm",
}


def _sse(event: str, data: dict[str, Any]) -> bytes:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n".encode("utf-8")


def chat_summary(chat: Chat) -> dict[str, Any]:
    simulation = storage.get_simulation(chat.simulation_id)
    return {
        "id": chat.id,
        "simulation_id": chat.simulation_id,
        "simulation_name": simulation.name if simulation else None,
        "created_at": chat.created_at.isoformat(),
        "status": chat.status,
        "message_count": len(chat.messages),
        "has_analysis": chat.analysis_result is not None,
        "analysis_updated_at": chat.analysis_updated_at.isoformat() if chat.analysis_updated_at else None,
        "path": chat.path.model_dump() if chat.path else None,
    }


def get_chat_or_404(chat_id: str) -> Chat:
    chat = storage.get_chat(chat_id)
    if chat is None:
        raise HTTPException(404, "Chat not found")
    return chat


def owns(chat: Chat, user: User) -> bool:
    if chat.owner_id == user.id:
        return True
    return chat.path is not None and chat.path.user_identifier == user.email


def check_access(chat: Chat, user: User) -> None:
    if user.role != "admin" and not owns(chat, user):
        raise HTTPException(404, "Chat not found")


def open_session(chat_id: str) -> ChatSession:
    try:
        return load_session(chat_id)
    except ChatNotFound:
        raise HTTPException(404, "Chat not found")
    except ConfigurationError as e:
        raise HTTPException(409, str(e))


def session_view(session: ChatSession) -> dict[str, Any]:
    """What the chat room shows: transcript, status, mood and keypoint state."""
    return {
        "id": session.chat_id,
        "status": session.status,
        "simulation": {
            "id": session.simulation.id,
            "name": session.simulation.name,
            "description": session.simulation.description,
            "objective": session.simulation.objective,
            "max_interactions": session.simulation.max_interactions,
        },
        "character": {"id": session.character.id, "name": session.character.name},
        "mood": session.mood.name if session.mood else session.character.mood,
        "mood_level": session.mood_level,
        "tracker": session.tracker,
        "interactions": session.assistant_count(),
        "messages": [m.model_dump(mode="json") for m in session.messages],
        "path": session.chat.path.model_dump() if session.chat.path else None,
        "analysis_result": session.chat.analysis_result,
    }


async def turn_response(chat_id: str, body: TurnBody) -> StreamingResponse:
    """Run one turn and stream its events as server-sent events."""
    session = open_session(chat_id)
    events = run_turn(session, body.message, client_for(session.setting, session.prompts))
    try:
        first = await anext(events)
    except TurnRejected as e:
        raise HTTPException(409, str(e))

    async def gen() -> AsyncIterator[bytes]:
        yield _sse(first.type, first.data)
        try:
            async for event in events:
                yield _sse(event.type, event.data)
        except Exception as e:
            logger.exception("Turn failed for chat %s", chat_id)
            yield _sse("error", {"message": f"Turn failed: {e}"})
        yield _sse("done", {"status": session.status, "mood_level": session.mood_level})

    return StreamingResponse(
        gen(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


async def analysis_response(chat_id: str) -> dict[str, Any]:
    if get_chat_or_404(chat_id).status == "active":
        raise HTTPException(409, "Only completed or failed chats can be analyzed")
    try:
        result = await analyze_chat(chat_id)
    except ChatNotFound:
        raise HTTPException(404, "Chat not found")
    except ConfigurationError as e:
        raise HTTPException(409, str(e))
    except AnalysisError as e:
        raise HTTPException(502, str(e))
    return {"analysis_result": result}


@router.get("/chats")
async def list_chats(user: User = Depends(require_user)):
    """List chats, newest first. Non-admins only see their own."""
    chats = storage.list_chats()
    if user.role != "admin":
        chats = [c for c in chats if owns(c, user)]
    return [chat_summary(c) for c in chats]


def _untouched_chat(user: User, simulation_id: str) -> Chat | None:
    for chat in storage.list_chats():
        if (
            chat.owner_id == user.id
            and chat.simulation_id == simulation_id
            and chat.status == "active"
            and chat.path is None
            and not chat.messages
        ):
            return chat
    return None


@router.post("/chats", status_code=201)
async def create_chat(body: CreateChat, user: User = Depends(require_user)):
    """Start a simulation. An untouched active chat of the same user is reused."""
    simulation = storage.get_simulation(body.simulation_id)
    if not simulation:
        raise HTTPException(404, "Simulation not found")
    key = f"{user.id}:{simulation.id}"
    if not creations.acquire(key):
        raise HTTPException(409, "A chat is already being created")
    try:
        chat = _untouched_chat(user, simulation.id)
        if chat is None:
            chat = storage.create_chat(Chat(simulation_id=simulation.id, owner_id=user.id))
    finally:
        creations.release(key)
    return chat_summary(chat)


@router.get("/chats/{chat_id}")
async def get_chat(chat_id: str, user: User = Depends(require_user)):
    """Load a chat session (transcript, status, mood level, keypoint tracker)."""
    check_access(get_chat_or_404(chat_id), user)
    return session_view(open_session(chat_id))


@router.delete("/chats/{chat_id}")
async def delete_chat(chat_id: str, user: User = Depends(require_admin)):
    """Delete a chat."""
    if not storage.delete_chat(chat_id):
        raise HTTPException(404, "Chat not found")
    return {"ok": True}


@router.post("/chats/{chat_id}/turns")
async def chat_turn(chat_id: str, body: TurnBody, user: User = Depends(require_user)):
    """Send a player message; the response is an SSE stream of turn events."""
    check_access(get_chat_or_404(chat_id), user)
    return await turn_response(chat_id, body)


@router.post("/chats/{chat_id}/analysis")
async def analyze(chat_id: str, user: User = Depends(require_user)):
    """Run the whole-chat analysis for a completed or failed chat."""
    check_access(get_chat_or_404(chat_id), user)
    return await analysis_response(chat_id)


@router.post("/chats/{chat_id}/speech")
async def speech(chat_id: str, body: SpeechBody, user: User = Depends(require_user)):
    """Read one transcript message aloud (streamed audio)."""
    check_access(get_chat_or_404(chat_id), user)
    session = open_session(chat_id)
    if not 0 <= body.message_index < len(session.messages):
        raise HTTPException(404, "Message not found")
    text = session.messages[body.message_index].content
    media_type = AUDIO_MEDIA_TYPES.get(body.format)
    if media_type is None:
        raise HTTPException(400, f"Unsupported audio format '{body.format}'")

    audio = client_for(session.setting).speech(text, body.voice, body.speed, body.format)
    try:
        first = await anext(audio)
    except StopAsyncIteration:
        first = b""
    except LLMError as e:
        raise HTTPException(502, str(e))

    async def gen() -> AsyncIterator[bytes]:
        if first:
            yield first
        async for data in audio:
            yield data

    return StreamingResponse(gen(), media_type=media_type)


@router.get("/analyses")
async def list_analyses(user: User = Depends(require_user)):
    """Chats that have a stored analysis result."""
    chats = [c for c in storage.list_chats() if c.analysis_result is not None]
    if user.role != "admin":
        chats = [c for c in chats if owns(c, user)]
    return [
        dict(chat_summary(c), overall_score=c.analysis_result.get("overall_score"))
        for c in chats
    ]


@router.get("/analyses/{chat_id}")
async def get_analysis(chat_id: str, user: User = Depends(require_user)):
    """A single stored analysis result."""
    chat = get_chat_or_404(chat_id)
    check_access(chat, user)
    if chat.analysis_result is None:
        raise HTTPException(404, "This chat has not been analyzed")
    return dict(chat_summary(chat), analysis_result=chat.analysis_result)
