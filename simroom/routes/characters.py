"""Character and mood CRUD endpoints (admin)."""

from fastapi import APIRouter, Depends, HTTPException

from simroom import storage
from simroom.auth import require_admin
from simroom.models import Character, Mood

from .models import CreateCharacter, CreateMood, UpdateCharacter, UpdateMood

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/characters")
async def list_characters():
    """List all characters."""
    return storage.list_characters()


@router.post("/characters", status_code=201)
async def create_character(body: CreateCharacter):
    """Create a character."""
    return storage.create_character(Character(**body.model_dump()))


@router.get("/characters/{character_id}")
async def get_character(character_id: str):
    character = storage.get_character(character_id)
    if not character:
        raise HTTPException(404, "Character not found")
    return character


@router.patch("/characters/{character_id}")
async def update_character(character_id: str, body: UpdateCharacter):
    """Update name, description, mood or baseline intensity (clamped to 0–100)."""
    updated = storage.update_character(character_id, body.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(404, "Character not found")
    return updated


@router.delete("/characters/{character_id}")
async def delete_character(character_id: str):
    if any(s.character_id == character_id for s in storage.list_simulations()):
        raise HTTPException(409, "Cannot delete character: it's being used by one or more simulations")
    if not storage.delete_character(character_id):
        raise HTTPException(404, "Character not found")
    return {"ok": True}


@router.get("/moods")
async def list_moods():
    """List all moods with their threshold behaviors."""
    return storage.list_moods()


@router.post("/moods", status_code=201)
async def create_mood(body: CreateMood):
    if storage.find_mood(body.name):
        raise HTTPException(409, f"Mood '{body.name}' already exists")
    return storage.create_mood(Mood(**body.model_dump()))


@router.get("/moods/{mood_id}")
async def get_mood(mood_id: str):
    mood = storage.get_mood(mood_id)
    if not mood:
        raise HTTPException(404, "Mood not found")
    return mood


@router.patch("/moods/{mood_id}")
async def update_mood(mood_id: str, body: UpdateMood):
    """Update a mood's name or replace its behaviors."""
    updated = storage.update_mood(mood_id, body.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(404, "Mood not found")
    return updated


@router.delete("/moods/{mood_id}")
async def delete_mood(mood_id: str):
    if not storage.delete_mood(mood_id):
        raise HTTPException(404, "Mood not found")
    return {"ok": True}
