import logging
from pathlib import Path

from fastapi import FastAPI

from simroom import storage
from simroom.config import get_settings
from simroom.routes import router


def create_app(data_dir: Path | None = None) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    storage.init_storage(data_dir or settings.data_dir)

    app = FastAPI(title="Simroom")
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
