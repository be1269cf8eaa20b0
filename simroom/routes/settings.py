"""Health check, AI provider settings and global prompt endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from simroom import storage
from simroom.auth import require_admin
from simroom.models import AISetting

from .models import CreateAISetting, UpdateAISetting, UpdateGlobalPrompts

router = APIRouter()


def _masked(setting: AISetting) -> dict:
    data = setting.model_dump(mode="json")
    key = data["api_key"]
    data["api_key"] = f"{key[:3]}…{key[-4:]}" if len(key) > 8 else ("…" if key else "")
    return data


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings", dependencies=[Depends(require_admin)])
async def list_settings():
    """List AI settings with masked API keys."""
    return [_masked(s) for s in storage.list_ai_settings()]


@router.post("/settings", status_code=201, dependencies=[Depends(require_admin)])
async def create_setting(body: CreateAISetting):
    return _masked(storage.create_ai_setting(AISetting(**body.model_dump())))


@router.patch("/settings/{setting_id}", dependencies=[Depends(require_admin)])
async def update_setting(setting_id: str, body: UpdateAISetting):
    updated = storage.update_ai_setting(setting_id, body.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(404, "Setting not found")
    return _masked(updated)


@router.delete("/settings/{setting_id}", dependencies=[Depends(require_admin)])
async def delete_setting(setting_id: str):
    """Delete an AI setting unless a simulation still uses it."""
    if storage.simulations_using_setting(setting_id):
        raise HTTPException(409, "Cannot delete setting: it's being used by one or more simulations")
    if not storage.delete_ai_setting(setting_id):
        raise HTTPException(404, "Setting not found")
    return {"ok": True}


@router.get("/global-prompts", dependencies=[Depends(require_admin)])
async def get_global_prompts():
    """The prompt record, or the built-in defaults if none was saved yet."""
    prompts = storage.get_global_prompts()
    if prompts is None:
        return {"saved": False, **storage.DEFAULT_GLOBAL_PROMPTS}
    return {"saved": True, **prompts.model_dump(mode="json")}


@router.put("/global-prompts", dependencies=[Depends(require_admin)])
async def save_global_prompts(body: UpdateGlobalPrompts):
    """Save prompt templates and tracing options (partial update)."""
    return storage.save_global_prompts(body.model_dump(exclude_none=True))


@router.post("/global-prompts/reset", dependencies=[Depends(require_admin)])
async def reset_global_prompts():
    """Restore the built-in prompt templates."""
    return storage.reset_global_prompts()
