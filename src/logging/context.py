# src/logging/context.py — v1
"""Contextual logging support: attach run, agent, iteration and wave to log records.

Context variables are copied into every asyncio task, so each concurrently
running agent carries its own agent/wave values.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per swarm run.
_run_name: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_name", default=None
)
_agent: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agent", default=None
)
_iteration: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "iteration", default=None
)
_wave: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "wave", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_name: str | None = None
    agent: str | None = None
    iteration: int | None = None
    wave: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_name=_run_name.get(),
        agent=_agent.get(),
        iteration=_iteration.get(),
        wave=_wave.get(),
    )


def set_run_context(run_name: str) -> None:
    """Set run-level context (called once per swarm run)."""
    _run_name.set(run_name)


def set_iteration_context(iteration: int, wave: int | None = None) -> None:
    """Set iteration/wave context (called at each wave boundary)."""
    _iteration.set(iteration)
    _wave.set(wave)


def set_agent_context(agent: str) -> None:
    """Set agent-level context (called inside each agent task)."""
    _agent.set(agent)


def clear_context() -> None:
    """Reset all context variables."""
    _run_name.set(None)
    _agent.set(None)
    _iteration.set(None)
    _wave.set(None)


def restore_context(ctx: LogContext) -> None:
    """Put back a snapshot taken with get_context()."""
    _run_name.set(ctx.run_name)
    _agent.set(ctx.agent)
    _iteration.set(ctx.iteration)
    _wave.set(ctx.wave)
