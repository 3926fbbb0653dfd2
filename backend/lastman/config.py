"""
backend/lastman/config.py

Purpose:
    Central settings loading for the game service, workers and tools.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "lastman"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Operator endpoints + tools (empty disables /api/admin)
    ADMIN_API_KEY: str = ""

    # Edition defaults (each edition document may override)
    DEFAULT_STARTING_LIVES: int = 2
    DEFAULT_TOTAL_ROUNDS: int = 10
    DRAW_COSTS_LIFE: bool = False
    AUTOPICK_STRICT_LOCKOUT: bool = False

    # Fixture dates/times without an offset are local to this zone
    FIXTURE_TIMEZONE: str = "Europe/London"

    # Scheduled workers
    AUTOMATION_ENABLED: bool = True
    DEADLINE_CHECK_INTERVAL_SECONDS: int = 60
    PICK_RESOLVER_INTERVAL_MINUTES: int = 30

    # Repository retry on transient Mongo failures
    REPOSITORY_MAX_RETRIES: int = 3
    REPOSITORY_RETRY_BASE_DELAY: float = 0.5  # doubled per attempt

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
