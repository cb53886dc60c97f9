"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Remote document store
    database_url: str = "sqlite+aiosqlite:///pawfeed_remote.db"

    # Local durable storage (read cursors, hidden sets)
    local_storage_url: str = "sqlite+aiosqlite:///pawfeed_local.db"

    # Local development mode (set PAWFEED_LOCAL_MODE=1 for SQLite files + console logs)
    local_mode: bool = False

    # Feed
    feed_limit: int = 20
    badge_cap: int = 99
    comment_notifications_enabled: bool = True

    # CORS
    cors_allowed_origins: list[str] = ["http://localhost:19006", "http://localhost:3000"]

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"
    json_logs: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PAWFEED_",
    }

    @property
    def effective_database_url(self) -> str:
        """Return the SQLite file URL in local mode, the configured URL otherwise."""
        if self.local_mode:
            return "sqlite+aiosqlite:///pawfeed_remote.db"
        return self.database_url

    @property
    def effective_local_storage_url(self) -> str:
        if self.local_mode:
            return "sqlite+aiosqlite:///pawfeed_local.db"
        return self.local_storage_url


settings = Settings()
