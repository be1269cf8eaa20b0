"""Storage initialization and the generic table client.

Each table is one JSON file holding a list of row dicts. The helpers below
are the only code that touches those files; entity modules build on them.
"""

import json
from pathlib import Path
from typing import Any

_data_dir: Path | None = None

TABLES = (
    "characters",
    "moods",
    "simulations",
    "ai_settings",
    "global_prompts",
    "chats",
    "paths",
    "path_progress",
    "users",
)


def init_storage(data_dir: Path) -> None:
    global _data_dir
    _data_dir = data_dir
    _data_dir.mkdir(parents=True, exist_ok=True)
    tables_dir().mkdir(exist_ok=True)


def data_dir() -> Path:
    assert _data_dir is not None, "Call init_storage() before using storage"
    return _data_dir


def tables_dir() -> Path:
    return data_dir() / "tables"


def _table_path(table: str) -> Path:
    if table not in TABLES:
        raise KeyError(f"Unknown table {table!r}")
    return tables_dir() / f"{table}.json"


def read_table(table: str) -> list[dict[str, Any]]:
    """Load every row of a table. Returns [] if the table was never written."""
    path = _table_path(table)
    if not path.is_file():
        return []
    return json.loads(path.read_text())


def write_table(table: str, rows: list[dict[str, Any]]) -> None:
    _table_path(table).write_text(json.dumps(rows, indent=2, default=str))


def _matches(row: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(row.get(key) == value for key, value in filters.items())


def select_rows(table: str, **filters: Any) -> list[dict[str, Any]]:
    """Rows whose columns equal every given filter value, in insertion order."""
    return [row for row in read_table(table) if _matches(row, filters)]


def get_row(table: str, row_id: str) -> dict[str, Any] | None:
    for row in read_table(table):
        if row.get("id") == row_id:
            return row
    return None


def insert_row(table: str, row: dict[str, Any]) -> dict[str, Any]:
    rows = read_table(table)
    if any(r.get("id") == row["id"] for r in rows):
        raise ValueError(f"Duplicate id {row['id']!r} in {table}")
    rows.append(row)
    write_table(table, rows)
    return row


def update_row(table: str, row_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Merge fields into one row. Returns the updated row, or None if missing."""
    rows = read_table(table)
    for row in rows:
        if row.get("id") == row_id:
            row.update(fields)
            write_table(table, rows)
            return row
    return None


def delete_row(table: str, row_id: str) -> bool:
    rows = read_table(table)
    remaining = [r for r in rows if r.get("id") != row_id]
    if len(remaining) == len(rows):
        return False
    write_table(table, remaining)
    return True


def upsert_row(table: str, match: dict[str, Any], row: dict[str, Any]) -> dict[str, Any]:
    """Replace the first row matching `match` (keeping its id), else insert."""
    rows = read_table(table)
    for i, existing in enumerate(rows):
        if _matches(existing, match):
            merged = dict(row)
            merged["id"] = existing["id"]
            merged["created_at"] = existing.get("created_at", row.get("created_at"))
            rows[i] = merged
            write_table(table, rows)
            return merged
    rows.append(row)
    write_table(table, rows)
    return row
