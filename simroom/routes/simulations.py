"""Simulation CRUD endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from simroom import storage
from simroom.auth import require_admin, require_user
from simroom.models import Simulation

from .models import CreateSimulation, UpdateSimulation

router = APIRouter()


def _check_refs(character_id: str | None, setting_id: str | None) -> None:
    if character_id is not None and not storage.get_character(character_id):
        raise HTTPException(400, "Character not found")
    if setting_id is not None and not storage.get_ai_setting(setting_id):
        raise HTTPException(400, "Please select an AI setting")


@router.get("/simulations", dependencies=[Depends(require_user)])
async def list_simulations():
    """List all simulations."""
    return storage.list_simulations()


@router.get("/simulations/{simulation_id}", dependencies=[Depends(require_user)])
async def get_simulation(simulation_id: str):
    simulation = storage.get_simulation(simulation_id)
    if not simulation:
        raise HTTPException(404, "Simulation not found")
    return simulation


@router.post("/simulations", status_code=201, dependencies=[Depends(require_admin)])
async def create_simulation(body: CreateSimulation):
    """Create a simulation bound to a character and an AI setting."""
    _check_refs(body.character_id, body.setting_id)
    return storage.create_simulation(Simulation(**body.model_dump()))


@router.patch("/simulations/{simulation_id}", dependencies=[Depends(require_admin)])
async def update_simulation(simulation_id: str, body: UpdateSimulation):
    fields = body.model_dump(exclude_none=True)
    _check_refs(fields.get("character_id"), fields.get("setting_id"))
    updated = storage.update_simulation(simulation_id, fields)
    if not updated:
        raise HTTPException(404, "Simulation not found")
    return updated


@router.delete("/simulations/{simulation_id}", dependencies=[Depends(require_admin)])
async def delete_simulation(simulation_id: str):
    if not storage.delete_simulation(simulation_id):
        raise HTTPException(404, "Simulation not found")
    return {"ok": True}
