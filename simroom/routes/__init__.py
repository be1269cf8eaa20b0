"""FastAPI API endpoints under /api.

Endpoint groups: health + AI settings + global prompts, auth, characters and
moods, simulations, chats (turns stream as SSE), analyses, learning paths and
their public (account-less) counterparts under /api/public/.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .characters import router as characters_router
from .chats import router as chats_router
from .paths import router as paths_router
from .settings import router as settings_router
from .simulations import router as simulations_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(auth_router)
router.include_router(characters_router)
router.include_router(simulations_router)
router.include_router(chats_router)
router.include_router(paths_router)
