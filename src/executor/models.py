# src/executor/models.py — v1
"""Executor-facing types: TaskRequest, TaskResult, TaskProgress."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, Field


class TaskProgress(BaseModel):
    """A single progress chunk emitted by a running agent."""

    agent_id: str
    agent_name: str
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TaskResult(BaseModel):
    """Normalized outcome of one agent task, whatever the backend."""

    agent_id: str
    exit_code: int
    output: str = ""
    error: str | None = None
    duration_ms: int = 0
    aborted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


ProgressHandler = Callable[[TaskProgress], None]


@dataclass
class TaskRequest:
    """Everything an executor needs to run one agent once.

    options is opaque to the swarm core: credential, model-registry and
    settings handles ride along to the backend untouched.
    """

    cwd: Path
    agent_name: str
    agent_id: str
    system_prompt: str
    task: str
    index: int = 0
    artifacts_dir: Path | None = None
    model_override: str | None = None
    abort_event: asyncio.Event | None = None
    on_progress: ProgressHandler | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def aborted(self) -> bool:
        return self.abort_event is not None and self.abort_event.is_set()

    def emit(self, message: str) -> None:
        """Forward a progress chunk if a handler is attached."""
        if self.on_progress is not None:
            self.on_progress(
                TaskProgress(
                    agent_id=self.agent_id,
                    agent_name=self.agent_name,
                    message=message,
                )
            )
