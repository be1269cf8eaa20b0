"""Tests for path step statuses and attempt counting."""

import pytest

from simroom import storage
from simroom.errors import StepUnavailable
from simroom.models import Path, PathLink, PathSimulation
from simroom.paths import path_view, record_outcome, start_step

from tests.helpers import make_simulation

USER = "ann@example.com"


def _path(max_attempts=2, steps=2):
    sims = [make_simulation() for _ in range(steps)]
    return storage.create_path(Path(
        name="Onboarding",
        simulations=[
            PathSimulation(simulation_id=s.id, order_index=i, max_attempts=max_attempts)
            for i, s in enumerate(sims)
        ],
    ))


def _finish(chat, completed):
    storage.set_status(chat.id, "completed" if completed else "failed")
    record_outcome(chat.path, completed=completed)


def _statuses(path, user=USER):
    return [s.status for s in path_view(path, user).steps]


def test_fresh_path_unlocks_only_first_step():
    path = _path()
    assert _statuses(path) == ["available", "locked"]


def test_steps_are_ordered_by_index():
    first, second = make_simulation(), make_simulation()
    path = storage.create_path(Path(name="p", simulations=[
        PathSimulation(simulation_id=second.id, order_index=1),
        PathSimulation(simulation_id=first.id, order_index=0),
    ]))
    assert [s.simulation_id for s in storage.get_path(path.id).simulations] == [first.id, second.id]


def test_start_counts_an_attempt_and_links_the_chat():
    path = _path()
    step = path.simulations[0]
    chat = start_step(path, step.id, USER)

    assert chat.path == PathLink(
        path_id=path.id, path_simulation_id=step.id,
        simulation_id=step.simulation_id, user_identifier=USER,
    )
    assert chat.simulation_id == step.simulation_id
    view = path_view(path, USER)
    assert view.steps[0].attempts_used == 1
    assert view.steps[0].attempts_left == 1


def test_failed_attempt_allows_retry_until_exhausted():
    path = _path(max_attempts=2)
    step = path.simulations[0]

    _finish(start_step(path, step.id, USER), completed=False)
    assert _statuses(path)[0] == "retry"

    _finish(start_step(path, step.id, USER), completed=False)
    assert _statuses(path)[0] == "failed"

    with pytest.raises(StepUnavailable, match="Maximum attempts"):
        start_step(path, step.id, USER)


def test_completion_unlocks_next_step():
    path = _path()
    _finish(start_step(path, path.simulations[0].id, USER), completed=True)
    assert _statuses(path) == ["completed", "available"]


def test_locked_step_cannot_start():
    path = _path()
    with pytest.raises(StepUnavailable, match="previous"):
        start_step(path, path.simulations[1].id, USER)


def test_replaying_a_completed_step_resets_attempts():
    path = _path(max_attempts=2)
    step = path.simulations[0]
    _finish(start_step(path, step.id, USER), completed=False)
    _finish(start_step(path, step.id, USER), completed=True)

    start_step(path, step.id, USER)

    progress = storage.get_step_progress(path.id, step.simulation_id, USER)
    assert progress.attempts_used == 1
    assert progress.completed is False
    assert progress.last_attempt_failed is False


def test_untouched_attempt_is_reused():
    path = _path()
    step = path.simulations[0]
    first = start_step(path, step.id, USER)
    second = start_step(path, step.id, USER)
    assert first.id == second.id
    assert path_view(path, USER).steps[0].attempts_used == 1


def test_progress_is_per_user():
    path = _path()
    _finish(start_step(path, path.simulations[0].id, USER), completed=True)
    assert _statuses(path, "bob@example.com") == ["available", "locked"]


def test_unknown_step():
    with pytest.raises(KeyError):
        start_step(_path(), "missing", USER)


def test_path_completed_flag():
    path = _path(steps=1)
    assert path_view(path, USER).completed is False
    _finish(start_step(path, path.simulations[0].id, USER), completed=True)
    assert path_view(path, USER).completed is True


def test_delete_path_removes_progress():
    path = _path()
    start_step(path, path.simulations[0].id, USER)
    storage.delete_path(path.id)
    assert storage.get_progress(path.id, USER) == {}
