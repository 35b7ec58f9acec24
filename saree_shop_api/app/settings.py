# app/settings.py
from __future__ import annotations
from pathlib import Path
from typing import List, Optional
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json

_DEFAULT_CORS = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"]
_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return list(_DEFAULT_CORS)
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return list(_DEFAULT_CORS)
    # try JSON first
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    except ValueError:
        pass
    # fallback: comma separated
    return [p.strip() for p in s.split(",") if p.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",   # ignore unknown env keys instead of raising
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=5001,        validation_alias=AliasChoices("API_PORT", "PORT"))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )

    # --- Remote order store (Postgres / Supabase) ---
    database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SUPABASE_DB_URL"),
    )
    db_pool_min_size: int = Field(default=1, validation_alias=AliasChoices("DB_POOL_MIN_SIZE",))
    db_pool_max_size: int = Field(default=10, validation_alias=AliasChoices("DB_POOL_MAX_SIZE",))
    # connect + per-command timeout, so an unreachable database falls back quickly
    remote_timeout_seconds: float = Field(
        default=10.0, validation_alias=AliasChoices("REMOTE_TIMEOUT_SECONDS",)
    )

    # --- Local fallback store ---
    data_dir: Path = Field(default=_DEFAULT_DATA_DIR, validation_alias=AliasChoices("DATA_DIR",))
    local_product_prefix: str = Field(
        default="local-", validation_alias=AliasChoices("LOCAL_PRODUCT_PREFIX",)
    )

    # --- Orders ---
    payment_session_ttl_minutes: int = Field(
        default=15, validation_alias=AliasChoices("PAYMENT_SESSION_TTL_MINUTES",)
    )
    enforce_server_total: bool = Field(
        default=False, validation_alias=AliasChoices("ENFORCE_SERVER_TOTAL",)
    )

    # --- Logging ---
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))
    log_dir: Optional[Path] = Field(default=None, validation_alias=AliasChoices("LOG_DIR",))

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)


# singleton
settings = Settings()
