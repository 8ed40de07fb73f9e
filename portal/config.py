"""Application configuration using Pydantic Settings."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "School Portal"
    debug: bool = False
    log_level: str = "INFO"

    # Storage: "file" (per-device JSON files), "memory" or "mongo"
    storage_backend: str = "file"
    storage_dir: str = ".portal-data"
    storage_prefix: str = "ppc_"

    # MongoDB key-value backend
    mongodb_url: str = ""
    mongodb_db_name: str = "school_portal"
    mongodb_collection: str = "kv"

    # Seed absent or unreadable collections with the demo dataset
    seed_demo_data: bool = True

    # Classes
    default_class_capacity: int = 30

    # Sessions / sign-in
    session_timeout_minutes: int = 60
    max_login_attempts: int = 5
    lockout_minutes: int = 15

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173"

    @model_validator(mode="after")
    def _validate_storage(self):
        if self.storage_backend not in ("file", "memory", "mongo"):
            raise ValueError(f"Unsupported STORAGE_BACKEND: {self.storage_backend}")
        if self.storage_backend == "mongo" and not self.mongodb_url:
            raise ValueError("MONGODB_URL must be set when STORAGE_BACKEND is 'mongo'")
        if self.default_class_capacity < 1:
            raise ValueError("DEFAULT_CLASS_CAPACITY must be a positive integer")
        if self.session_timeout_minutes < 1:
            raise ValueError("SESSION_TIMEOUT_MINUTES must be a positive integer")
        return self


settings = Settings()
