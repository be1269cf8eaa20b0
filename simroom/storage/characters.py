"""Character and mood rows."""

from typing import Any

from simroom.models import Character, Mood

from .core import delete_row, get_row, insert_row, read_table, update_row


def list_characters() -> list[Character]:
    return [Character.model_validate(r) for r in read_table("characters")]


def get_character(character_id: str) -> Character | None:
    row = get_row("characters", character_id)
    return Character.model_validate(row) if row else None


def create_character(character: Character) -> Character:
    insert_row("characters", character.model_dump(mode="json"))
    return character


def update_character(character_id: str, fields: dict[str, Any]) -> Character | None:
    if "intensity" in fields:
        fields["intensity"] = max(0, min(100, fields["intensity"]))
    row = update_row("characters", character_id, fields)
    return Character.model_validate(row) if row else None


def delete_character(character_id: str) -> bool:
    return delete_row("characters", character_id)


def list_moods() -> list[Mood]:
    return [Mood.model_validate(r) for r in read_table("moods")]


def get_mood(mood_id: str) -> Mood | None:
    row = get_row("moods", mood_id)
    return Mood.model_validate(row) if row else None


def find_mood(name: str) -> Mood | None:
    """Look up a mood by name, ignoring case. Characters reference moods by name."""
    wanted = name.strip().lower()
    if not wanted:
        return None
    for mood in list_moods():
        if mood.name.strip().lower() == wanted:
            return mood
    return None


def create_mood(mood: Mood) -> Mood:
    insert_row("moods", mood.model_dump(mode="json"))
    return mood


def update_mood(mood_id: str, fields: dict[str, Any]) -> Mood | None:
    row = update_row("moods", mood_id, fields)
    return Mood.model_validate(row) if row else None


def delete_mood(mood_id: str) -> bool:
    return delete_row("moods", mood_id)
