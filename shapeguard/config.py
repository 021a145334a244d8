"""Engine configuration via environment variables."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (``SHAPEGUARD_`` prefix)."""

    # String builders
    DEFAULT_CHARSET: str = "a-zA-Z0-9"

    # Number builders: tolerance for float divisibility in step()
    STEP_TOLERANCE: float = 1e-9

    # JSON Schema codec
    SCHEMA_DIALECT: str = "https://json-schema.org/draft/2020-12/schema"
    EMIT_SCHEMA_DIALECT: bool = True

    # Logging
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    model_config = {
        "env_prefix": "SHAPEGUARD_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
