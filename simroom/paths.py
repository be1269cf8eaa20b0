"""Learning path progress: step status, attempt counting, chat outcomes.

A user (identified by a free-text identifier, e.g. an email) plays the steps
of a path in order. Starting a step creates a chat linked to the step and
counts one attempt; a step that was already completed and is replayed starts
over at one attempt. When a linked chat concludes, record_outcome() flips
the step's `completed` / `last_attempt_failed` flags.
"""

import logging
from typing import Literal

from pydantic import BaseModel

from simroom import storage
from simroom.errors import StepUnavailable
from simroom.models import Chat, Path, PathLink, PathProgress, PathSimulation

logger = logging.getLogger(__name__)

StepStatus = Literal["available", "retry", "completed", "failed", "locked"]


class StepView(BaseModel):
    step: PathSimulation
    status: StepStatus
    attempts_used: int
    attempts_left: int


class PathView(BaseModel):
    path: Path
    user_identifier: str
    steps: list[StepView]
    completed: bool


def step_status(
    path: Path, index: int, progress: dict[str, PathProgress]
) -> StepStatus:
    step = path.simulations[index]
    prog = progress.get(step.simulation_id)
    if prog is not None and prog.completed:
        return "completed"
    if index > 0:
        prev = progress.get(path.simulations[index - 1].simulation_id)
        if prev is None or not prev.completed:
            return "locked"
    if prog is not None and prog.attempts_used >= step.max_attempts:
        return "failed"
    if prog is not None and prog.last_attempt_failed:
        return "retry"
    return "available"


def path_view(path: Path, user_identifier: str) -> PathView:
    progress = storage.get_progress(path.id, user_identifier)
    steps: list[StepView] = []
    for index, step in enumerate(path.simulations):
        prog = progress.get(step.simulation_id)
        used = prog.attempts_used if prog else 0
        steps.append(StepView(
            step=step,
            status=step_status(path, index, progress),
            attempts_used=used,
            attempts_left=max(0, step.max_attempts - used),
        ))
    completed = bool(steps) and all(s.status == "completed" for s in steps)
    return PathView(path=path, user_identifier=user_identifier, steps=steps, completed=completed)


def _find_step(path: Path, path_simulation_id: str) -> int:
    for index, step in enumerate(path.simulations):
        if step.id == path_simulation_id:
            return index
    raise KeyError(f"Step {path_simulation_id} is not part of path {path.id}")


def _untouched_attempt(path: Path, step: PathSimulation, user_identifier: str) -> Chat | None:
    """An active, still empty chat already started for this step and user."""
    for chat in storage.list_chats():
        link = chat.path
        if (
            link is not None
            and link.path_id == path.id
            and link.path_simulation_id == step.id
            and link.user_identifier == user_identifier
            and chat.status == "active"
            and not chat.messages
        ):
            return chat
    return None


def start_step(path: Path, path_simulation_id: str, user_identifier: str) -> Chat:
    """Create the attempt chat for one step and count the attempt.

    Raises KeyError for an unknown step and StepUnavailable when the step is
    locked or out of attempts. A repeated start while the previous attempt
    chat is still empty returns that chat without counting another attempt.
    """
    index = _find_step(path, path_simulation_id)
    step = path.simulations[index]
    progress = storage.get_progress(path.id, user_identifier)
    status = step_status(path, index, progress)
    if status == "locked":
        raise StepUnavailable("Complete the previous simulation first")
    if status == "failed":
        raise StepUnavailable("Maximum attempts reached for this simulation")

    existing = _untouched_attempt(path, step, user_identifier)
    if existing is not None:
        return existing

    chat = storage.create_chat(Chat(
        simulation_id=step.simulation_id,
        path=PathLink(
            path_id=path.id,
            path_simulation_id=step.id,
            simulation_id=step.simulation_id,
            user_identifier=user_identifier,
        ),
    ))

    prog = progress.get(step.simulation_id)
    if prog is None:
        prog = PathProgress(
            path_id=path.id, simulation_id=step.simulation_id, user_identifier=user_identifier,
        )
    prog.attempts_used = 1 if prog.completed else prog.attempts_used + 1
    prog.completed = False
    prog.last_attempt_failed = False
    storage.save_progress(prog)
    logger.info(
        "path %s step %s attempt %d started by %s (chat %s)",
        path.id, step.id, prog.attempts_used, user_identifier, chat.id,
    )
    return chat


def record_outcome(link: PathLink, completed: bool) -> PathProgress | None:
    """Flip the step's progress flags for a concluded chat."""
    prog = storage.get_step_progress(link.path_id, link.simulation_id, link.user_identifier)
    if prog is None:
        logger.warning(
            "No progress record for path %s simulation %s user %s",
            link.path_id, link.simulation_id, link.user_identifier,
        )
        return None
    prog.completed = completed
    prog.last_attempt_failed = not completed
    return storage.save_progress(prog)
