"""Settings for the audit photo and scoring services."""
import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Configuration loaded from ``AUDIT_``-prefixed environment variables."""

    # Image compression
    lado_maximo_px: int = Field(default=1920, gt=0)
    qualidade_jpeg: int = Field(default=85, ge=1, le=100)

    # Worker offload for CPU-bound photo work
    photo_workers: int = Field(default=4, ge=1)

    # Logging
    log_level: str = 'INFO'
    log_dir: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix='AUDIT_', case_sensitive=False, extra='ignore')

    def get(self, key, default=None):
        """Get a configuration value by name."""
        return getattr(self, key, default)

    def get_all(self):
        """Get all configuration values as dictionary."""
        return self.model_dump()


def load_settings(**overrides):
    """Build settings from the environment, keeping defaults when env values are invalid."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        logger.warning(
            f"Invalid AUDIT_* environment configuration, using defaults: {e.error_count()} error(s)"
        )
        return Settings.model_construct(**overrides)


@lru_cache
def get_settings():
    """Process-wide settings singleton."""
    return load_settings()
