"""Process configuration read from the environment (and `.env`).

Admin-editable configuration (AI settings, prompt templates) lives in
storage; this module only covers deployment knobs.
"""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = Path(__file__).parent.parent
load_dotenv(ROOT / ".env")

DEFAULT_DATA_DIR = ROOT / "data"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    openai_base_url: str = "https://api.openai.com/v1"
    llm_timeout: float = 120.0
    tts_model: str = "tts-1"
    auth_secret: str = "dev-secret-change-me"
    admin_emails: list[str] = []
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    admins = os.getenv("ADMIN_EMAILS", "")
    return Settings(
        data_dir=Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR))),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        llm_timeout=float(os.getenv("LLM_TIMEOUT", "120")),
        tts_model=os.getenv("TTS_MODEL", "tts-1"),
        auth_secret=os.getenv("AUTH_SECRET", "dev-secret-change-me"),
        admin_emails=[e.strip().lower() for e in admins.split(",") if e.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
