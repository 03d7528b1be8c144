from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./boom.db"
    # Seconds a SQLite writer waits for the database lock before failing
    sqlite_busy_timeout_seconds: float = 30.0

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:5173"

    # Media storage: folder for uploaded videos (empty = backend/uploads/media)
    media_upload_dir: str = ""
    media_max_upload_bytes: int = 500 * 1024 * 1024  # 500 MB

    # Signed media URL validity (seconds)
    signed_url_expire_seconds: int = 60 * 60 * 24  # 24 hours

    # Wallet balance granted at registration (smallest currency unit)
    starting_balance: int = 500

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
