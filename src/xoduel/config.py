"""Runtime configuration read from ``XODUEL_*`` environment variables."""

from __future__ import annotations

from typing import Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="XODUEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Interface uvicorn binds to")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    code_length: int = Field(
        default=4, ge=3, le=8, description="Characters in a session code"
    )
    bot_think_delay: Tuple[float, float] = Field(
        default=(0.6, 1.2),
        description="Seconds a scripted opponent waits before answering",
    )
    default_name: str = "Player"
    bot_name: str = "Bot"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("bot_think_delay")
    @classmethod
    def ensure_ordered_delay(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if low < 0 or high < low:
            raise ValueError("bot_think_delay must be (min, max) with 0 <= min <= max")
        return value
