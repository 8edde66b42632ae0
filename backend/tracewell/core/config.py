from __future__ import annotations

import os
from functools import lru_cache
from pydantic import Field, AnyHttpUrl
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_NAME: str = "TRACE API"
    ENV: str = Field(default=os.getenv("ENV", "local"))
    DEBUG: bool = Field(default=os.getenv("DEBUG", "false").lower() == "true")
    LOG_FORMAT: str = Field(default=os.getenv("LOG_FORMAT", "console"))  # "console" | "json"
    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))
    ALLOWED_ORIGINS: str | None = None  # comma-separated

    # Supabase
    SUPABASE_URL: AnyHttpUrl | None = None
    SUPABASE_SERVICE_ROLE: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    SUPABASE_SCHEMA: str = Field(default=os.getenv("SUPABASE_SCHEMA", "public"))
    SUPABASE_TIMEOUT_S: float = Field(default=float(os.getenv("SUPABASE_TIMEOUT_S", "15")))

    # Crisis state storage
    SAFETY_STORE: str = Field(default=os.getenv("SAFETY_STORE", "supabase"))  # "supabase" | "memory"
    SAFETY_TABLE: str = Field(default=os.getenv("SAFETY_TABLE", "user_safety_state"))

    class Config:
        env_file = (".env.backend", ".env.local", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached Settings instance. Call anywhere.
    """
    return Settings()
