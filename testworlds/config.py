"""
testworlds configuration: all environment variables in one place.

Read from environment at import time. Never hardcode secrets.
"""

from __future__ import annotations

import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).parent


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))

    # World isolation
    # Worlds are only honoured when explicitly enabled. Production never sets this.
    TEST_WORLDS_ENABLED: bool = _flag("TEST_WORLDS_ENABLED")
    WORLD_TOKEN_SECRET: str = os.environ.get("WORLD_TOKEN_SECRET", "")
    WORLD_TOKEN_ALGORITHM: str = "HS256"
    WORLD_TOKEN_TTL_HOURS: int = 4
    WORLD_COOKIE_NAME: str = "world_id"
    WORLD_HEADER_NAME: str = "X-Test-World"

    # Fixtures
    FIXTURES_ROOT: Path = Path(os.environ.get("FIXTURES_ROOT", str(PACKAGE_DIR / "fixtures")))

    # AI fixtures
    AI_FIXTURES_MODE: str = os.environ.get("AI_FIXTURES_MODE", "passthrough")
    AI_RECORD_TIMEOUT_SECONDS: float = float(os.environ.get("AI_RECORD_TIMEOUT_SECONDS", "30"))
    REPLAY_CHUNK_SIZE: int = int(os.environ.get("REPLAY_CHUNK_SIZE", "24"))
    REPLAY_DELAY_MS: int = int(os.environ.get("REPLAY_DELAY_MS", "0"))

    # Validator thresholds (advisory)
    LARGE_FIXTURE_BYTES: int = int(os.environ.get("LARGE_FIXTURE_BYTES", str(100 * 1024)))
    MAX_FIXTURES_PER_WORLD: int = int(os.environ.get("MAX_FIXTURES_PER_WORLD", "10"))

    # AI provider
    ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
    DEFAULT_MODEL: str = os.environ.get("DEFAULT_MODEL", "claude-sonnet-4-20250514")

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")

    @property
    def AI_FIXTURES_DIR(self) -> Path:
        return self.FIXTURES_ROOT / "ai"

    @property
    def WORLD_FIXTURES_DIR(self) -> Path:
        # World directories sit directly under the root, next to ai/
        return self.FIXTURES_ROOT


# Singleton instance
settings = Settings()
