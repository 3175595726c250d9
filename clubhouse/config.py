"""
Runtime configuration, read from the environment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _default_cors_origins() -> list[str]:
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8081",
        "http://127.0.0.1:8081",
    ]


@dataclass(frozen=True)
class Settings:
    db_path: Path
    jwt_secret_key: str = "clubhouse-dev-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    cors_origins: list[str] = field(default_factory=_default_cors_origins)
    log_level: str = "INFO"
    match_duration_minutes: int = 90


def load_settings() -> Settings:
    """Build settings from environment variables, falling back to dev defaults."""
    env = os.environ
    db_path = Path(env.get("CLUBHOUSE_DB_PATH") or _project_root() / "data" / "clubhouse.db")
    origins_raw = env.get("CLUBHOUSE_CORS_ORIGINS", "").strip()
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()] if origins_raw else _default_cors_origins()
    return Settings(
        db_path=db_path,
        jwt_secret_key=env.get("JWT_SECRET_KEY", Settings.jwt_secret_key),
        jwt_algorithm=env.get("JWT_ALGORITHM", Settings.jwt_algorithm),
        access_token_expire_minutes=int(env.get("ACCESS_TOKEN_EXPIRE_MINUTES", Settings.access_token_expire_minutes)),
        cors_origins=origins,
        log_level=env.get("LOG_LEVEL", Settings.log_level).upper(),
        match_duration_minutes=int(env.get("MATCH_DURATION_MINUTES", Settings.match_duration_minutes)),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
