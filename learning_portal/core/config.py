# learning_portal/core/config.py
from __future__ import annotations

import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _get_bool(env_name: str, default: bool = False) -> bool:
    val = os.getenv(env_name)
    if val is None:
        return default
    return str(val).strip().lower() not in {"0", "false", "no", "off", ""}


def _get_int(env_name: str, default: int) -> int:
    val = os.getenv(env_name)
    if val is None or not str(val).strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _split_csv(env_name: str, default: str = "") -> List[str]:
    raw = os.getenv(env_name, default)
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


class Settings(BaseModel):
    # ------------------------- App -------------------------
    APP_NAME: str = os.getenv("APP_NAME", "Family Learning Portal")
    DEBUG: bool = _get_bool("DEBUG", False)

    # ------------------------- DB -------------------------
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///portal.db")

    # Optional lesson catalogue loaded on first start when the lessons table is empty
    SEED_CSV_PATH: Optional[str] = os.getenv("SEED_CSV_PATH")

    # ------------------------- Logging -------------------------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

    # ------------------------- Dashboard feeds -------------------------
    RECENT_ACTIVITY_LIMIT: int = _get_int("RECENT_ACTIVITY_LIMIT", 5)
    UPCOMING_ACTIVITY_LIMIT: int = _get_int("UPCOMING_ACTIVITY_LIMIT", 3)
    RECENT_ACHIEVEMENTS_LIMIT: int = _get_int("RECENT_ACHIEVEMENTS_LIMIT", 5)

    # ------------------------- CORS -------------------------
    # e.g. CORS_ALLOW_ORIGINS="http://localhost:5173,http://127.0.0.1:3000"
    CORS_ALLOW_ORIGINS: List[str] = _split_csv("CORS_ALLOW_ORIGINS", "")

    # ------------------------- Derived flags -------------------------
    @property
    def DB_IS_SQLITE(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite:")

    @property
    def SQLALCHEMY_ECHO(self) -> bool:
        return self.DEBUG


settings = Settings()
