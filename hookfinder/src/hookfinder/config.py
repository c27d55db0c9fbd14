"""Feature flags and runtime settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (HOOKFINDER_*) or a .env file.

    The hook layer only ever reads these; toggling happens outside the process.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HOOKFINDER_",
        case_sensitive=False,
        frozen=True,
    )

    # ── Notification categories ──────────────────────────────────────────
    show_follower_toast: bool = True
    show_story_hidden_toast: bool = True
    show_story_hide_toast: bool = True

    # ── Story detector ───────────────────────────────────────────────────
    story_notify_policy: Literal["true_only", "log_both"] = "true_only"
    story_probe_fallback: bool = False

    # ── Observation session ──────────────────────────────────────────────
    focus_clear_delay_ms: int = Field(default=2000, ge=0)

    # ── Logging ──────────────────────────────────────────────────────────
    log_level: str = "INFO"

    @property
    def focus_clear_delay(self) -> float:
        return self.focus_clear_delay_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
