# locator_heal/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"
    webkit = "webkit"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for the locator healing engine.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Healing ----
    HEAL_ENABLED: bool = Field(default=True, description="Master switch for selector healing")
    HEAL_TIMEOUT_MS: int = Field(default=5000, ge=0, description="Deadline per healing attempt, 0 = unbounded")
    DISABLED_STRATEGIES: list[str] = Field(default_factory=list, description="Strategy names disabled at startup")
    HISTORY_LIMIT: int = Field(default=200, ge=1, description="Outcomes kept for stats()")

    # ---- Strategy tuning ----
    TESTID_ATTRIBUTE: str = Field(default="data-testid")
    TESTID_CONFIDENCE: float = Field(default=1.0, ge=0.0, le=1.0)
    ARIA_CONFIDENCE: float = Field(default=0.9, ge=0.0, le=1.0)
    TEXT_CONFIDENCE: float = Field(default=0.75, ge=0.0, le=1.0)
    TEXT_FUZZY_THRESHOLD: float = Field(default=0.85, ge=0.0, le=1.0)

    # ---- Persistence ----
    STORE_PATH: Optional[Path] = Field(default=None, description="JSON/YAML file with recorded ElementInfo; unset = in-memory")

    # ---- Browser (CLI sessions only) ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./locator-heal.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown envs to keep things flexible
    )

    @field_validator("STORE_PATH", "LOG_FILE", mode="after")
    @classmethod
    def _absolutize(cls, v: Optional[Path]):
        if v is None:
            return v
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("TESTID_ATTRIBUTE")
    @classmethod
    def _attr_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("TESTID_ATTRIBUTE cannot be empty")
        return v

    def ensure_dirs(self) -> None:
        """Create parent directories for configured files (idempotent)."""
        if self.LOG_TO_FILE:
            self.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        if self.STORE_PATH is not None:
            self.STORE_PATH.parent.mkdir(parents=True, exist_ok=True)

    # Convenience: Playwright launch options dict
    def playwright_launch_kwargs(self) -> dict:
        return {"headless": self.HEADLESS}


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    s = Settings()
    s.ensure_dirs()
    return s
