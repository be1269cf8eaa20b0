"""Learning path endpoints: admin editor, player progress, public access."""

from fastapi import APIRouter, Depends, HTTPException, Query

from simroom import storage
from simroom.auth import require_admin, require_user
from simroom.chat import creations
from simroom.errors import StepUnavailable
from simroom.models import Chat, Path, PathSimulation, User
from simroom.paths import path_view, start_step

from .chats import (
    chat_summary,
    analysis_response,
    get_chat_or_404,
    open_session,
    session_view,
    turn_response,
)
from .models import CreatePath, StartStep, TurnBody, UpdatePath

router = APIRouter()


def get_path_or_404(path_id: str) -> Path:
    path = storage.get_path(path_id)
    if path is None:
        raise HTTPException(404, "Path not found")
    return path


def get_public_path_or_404(path_id: str) -> Path:
    path = get_path_or_404(path_id)
    if not path.is_public:
        raise HTTPException(404, "Path not found")
    return path


def _check_steps(steps: list[PathSimulation]) -> None:
    for step in steps:
        if storage.get_simulation(step.simulation_id) is None:
            raise HTTPException(400, f"Simulation {step.simulation_id} not found")
    seen = [s.simulation_id for s in steps]
    if len(seen) != len(set(seen)):
        raise HTTPException(400, "A simulation can appear only once in a path")


def _start(path: Path, step_id: str, user_identifier: str) -> dict:
    key = f"{path.id}:{step_id}:{user_identifier}"
    if not creations.acquire(key):
        raise HTTPException(409, "This step is already being started")
    try:
        chat = start_step(path, step_id, user_identifier)
    except KeyError:
        raise HTTPException(404, "Step not found")
    except StepUnavailable as e:
        raise HTTPException(409, str(e))
    finally:
        creations.release(key)
    return chat_summary(chat)


# ── Admin editor ─────────────────────────────────────────


@router.get("/paths", dependencies=[Depends(require_user)])
async def list_paths():
    """List all paths with their ordered steps."""
    return storage.list_paths()


@router.post("/paths", status_code=201, dependencies=[Depends(require_admin)])
async def create_path(body: CreatePath):
    _check_steps(body.simulations)
    return storage.create_path(Path(**body.model_dump()))


@router.get("/paths/{path_id}", dependencies=[Depends(require_user)])
async def get_path(path_id: str):
    return get_path_or_404(path_id)


@router.patch("/paths/{path_id}", dependencies=[Depends(require_admin)])
async def update_path(path_id: str, body: UpdatePath):
    """Update path fields; `simulations` replaces the whole step list."""
    if body.simulations is not None:
        _check_steps(body.simulations)
    updated = storage.update_path(path_id, body.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(404, "Path not found")
    return updated


@router.delete("/paths/{path_id}", dependencies=[Depends(require_admin)])
async def delete_path(path_id: str):
    """Delete a path together with its progress records."""
    if not storage.delete_path(path_id):
        raise HTTPException(404, "Path not found")
    return {"ok": True}


# ── Signed-in players ────────────────────────────────────


@router.get("/paths/{path_id}/progress")
async def get_progress(
    path_id: str,
    user_identifier: str | None = Query(None),
    user: User = Depends(require_user),
):
    """Step statuses for a player. Admins may look up any identifier."""
    identifier = user_identifier if user.role == "admin" and user_identifier else user.email
    return path_view(get_path_or_404(path_id), identifier)


@router.post("/paths/{path_id}/steps/{step_id}/start", status_code=201)
async def start_path_step(path_id: str, step_id: str, user: User = Depends(require_user)):
    """Start (or retry) one step; returns the chat created for the attempt."""
    return _start(get_path_or_404(path_id), step_id, user.email)


# ── Public access (no account, free-text identifier) ─────


def _public_chat(chat_id: str, user_identifier: str) -> Chat:
    chat = get_chat_or_404(chat_id)
    link = chat.path
    if link is None or link.user_identifier != user_identifier:
        raise HTTPException(404, "Chat not found")
    get_public_path_or_404(link.path_id)
    return chat


@router.get("/public/paths/{path_id}")
async def get_public_path(path_id: str):
    return get_public_path_or_404(path_id)


@router.get("/public/paths/{path_id}/progress")
async def get_public_progress(path_id: str, user_identifier: str = Query(..., min_length=1)):
    return path_view(get_public_path_or_404(path_id), user_identifier.strip())


@router.post("/public/paths/{path_id}/steps/{step_id}/start", status_code=201)
async def start_public_step(path_id: str, step_id: str, body: StartStep):
    return _start(get_public_path_or_404(path_id), step_id, body.user_identifier.strip())


@router.get("/public/chats/{chat_id}")
async def get_public_chat(chat_id: str, user_identifier: str = Query(..., min_length=1)):
    _public_chat(chat_id, user_identifier.strip())
    return session_view(open_session(chat_id))


@router.post("/public/chats/{chat_id}/turns")
async def public_turn(chat_id: str, body: TurnBody, user_identifier: str = Query(..., min_length=1)):
    _public_chat(chat_id, user_identifier.strip())
    return await turn_response(chat_id, body)


@router.post("/public/chats/{chat_id}/analysis")
async def public_analysis(chat_id: str, user_identifier: str = Query(..., min_length=1)):
    _public_chat(chat_id, user_identifier.strip())
    return await analysis_response(chat_id)
