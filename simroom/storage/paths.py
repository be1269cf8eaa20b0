"""Learning paths and per-user path progress."""

from typing import Any

from simroom.models import Path, PathProgress, utcnow

from .core import delete_row, get_row, insert_row, read_table, select_rows, update_row, upsert_row


def _sorted(path: Path) -> Path:
    path.simulations.sort(key=lambda s: s.order_index)
    return path


def list_paths() -> list[Path]:
    return [_sorted(Path.model_validate(r)) for r in read_table("paths")]


def get_path(path_id: str) -> Path | None:
    row = get_row("paths", path_id)
    return _sorted(Path.model_validate(row)) if row else None


def create_path(path: Path) -> Path:
    insert_row("paths", path.model_dump(mode="json"))
    return _sorted(path)


def update_path(path_id: str, fields: dict[str, Any]) -> Path | None:
    row = update_row("paths", path_id, fields)
    return _sorted(Path.model_validate(row)) if row else None


def delete_path(path_id: str) -> bool:
    if not delete_row("paths", path_id):
        return False
    for progress in select_rows("path_progress", path_id=path_id):
        delete_row("path_progress", progress["id"])
    return True


def get_progress(path_id: str, user_identifier: str) -> dict[str, PathProgress]:
    """Progress records of one user on one path, keyed by simulation id."""
    rows = select_rows("path_progress", path_id=path_id, user_identifier=user_identifier)
    return {r["simulation_id"]: PathProgress.model_validate(r) for r in rows}


def get_step_progress(path_id: str, simulation_id: str, user_identifier: str) -> PathProgress | None:
    rows = select_rows(
        "path_progress",
        path_id=path_id, simulation_id=simulation_id, user_identifier=user_identifier,
    )
    return PathProgress.model_validate(rows[0]) if rows else None


def save_progress(progress: PathProgress) -> PathProgress:
    """Upsert by (path, simulation, user)."""
    progress.updated_at = utcnow()
    row = upsert_row(
        "path_progress",
        {
            "path_id": progress.path_id,
            "simulation_id": progress.simulation_id,
            "user_identifier": progress.user_identifier,
        },
        progress.model_dump(mode="json"),
    )
    return PathProgress.model_validate(row)
