# storefront/config.py

"""
Runtime settings, read from the environment (and a local .env file)
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

# Load the environment variables
load_dotenv()

# Build paths inside the project like this: os.path.join(BASE_DIR, ...)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

_TRUTHY = {"1", "true", "yes", "on"}

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


class Settings(BaseModel):
    app_env: str = "development"
    database_url: str = f"sqlite:///{os.path.join(BASE_DIR, 'storefront.db')}"
    token_ttl_seconds: int = 3600
    min_password_length: int = 6
    inventory_decrement: bool = False
    notification_webhook_url: str | None = None
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def load_settings() -> Settings:
    """
    Build a Settings object from the current environment.
    Unset variables fall back to the defaults declared on Settings.
    """
    app_env = os.getenv("APP_ENV", "development").lower()
    defaults = Settings()

    return Settings(
        app_env=app_env,
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", defaults.token_ttl_seconds)),
        min_password_length=int(os.getenv("MIN_PASSWORD_LENGTH", defaults.min_password_length)),
        inventory_decrement=os.getenv("INVENTORY_DECREMENT", "false").lower() in _TRUTHY,
        notification_webhook_url=os.getenv("NOTIFICATION_WEBHOOK_URL") or None,
        log_level=os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(app_env, "INFO")).upper(),
        cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    )


@lru_cache
def get_settings() -> Settings:
    # Dependency: tests swap this out through app.dependency_overrides
    return load_settings()
