from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "agrihero-admin"
    log_level: str = "INFO"

    # Select the persistence backend: "memory" for local/dev, "sql" for relational storage.
    storage_backend: str = "memory"
    database_url: str = "sqlite+aiosqlite:///./agrihero.db"
    # Create tables at startup when no migration tooling manages the schema.
    database_create_schema: bool = True
    # Load the demo dataset into an empty store at startup.
    seed_demo_data: bool = True

    # Cookie carrying the admin session token for browser clients.
    session_cookie_name: str = "agrihero_session"
    # Bound session lifetime so stale admin sessions expire on their own.
    session_ttl_hours: int = 24
    # Only send the session cookie over HTTPS in deployed environments.
    session_cookie_secure: bool = False
    # PBKDF2 work factor for stored password hashes.
    password_hash_iterations: int = 260_000


@lru_cache
def get_settings() -> Settings:
    return Settings()
