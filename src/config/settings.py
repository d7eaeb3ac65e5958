# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where runs live,
how the controller reacts to failures, which agent CLI is spawned and how
logs are written.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Workspace ===
    swarm_workspace: Path | None = None

    # === Controller ===
    halt_on_iteration_failure: bool = True
    max_concurrent_agents: int = 0

    # === Executor ===
    executor_backend: str = "subprocess"
    executor_command: str = "claude -p"
    executor_system_prompt_flag: str = "--append-system-prompt"
    executor_model_flag: str = "--model"
    executor_model: str = ""
    executor_timeout_s: float | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("max_concurrent_agents")
    @classmethod
    def validate_max_concurrent_agents(cls, v: int) -> int:
        """0 means unbounded; negatives are meaningless."""
        if v < 0:
            raise ValueError("max_concurrent_agents must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.executor_backend == "subprocess" and not self.executor_command_list:
            errors.append("EXECUTOR_COMMAND is required for the subprocess backend")

        if self.executor_timeout_s is not None and self.executor_timeout_s <= 0:
            errors.append("EXECUTOR_TIMEOUT_S must be positive when set")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def executor_command_list(self) -> list[str]:
        """Split the executor command line into argv."""
        return shlex.split(self.executor_command)

    @property
    def concurrency_limit(self) -> int | None:
        """Agent concurrency cap per wave, None when unbounded."""
        return self.max_concurrent_agents or None


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
