# src/pipeline/state.py — v1
"""Durable swarm run state: the snapshot persisted to state/pipeline.json.

AgentState entries are overwritten in place across iterations; history
lives only in the append-only logs.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

AgentStatus = Literal["pending", "waiting", "running", "completed", "failed"]
PipelineStatus = Literal["idle", "running", "completed", "failed", "aborted"]

TERMINAL_PIPELINE_STATUSES: frozenset[str] = frozenset(
    {"completed", "failed", "aborted"}
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AgentState(BaseModel):
    """Live status of one agent within the current iteration."""

    name: str
    status: AgentStatus = "pending"
    iteration: int = 0
    wave: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None


class SwarmState(BaseModel):
    """Whole-run snapshot. Any process can reconstruct progress from it."""

    name: str
    status: PipelineStatus = "idle"
    mode: str = "sequential"
    iteration: int = 0
    target_count: int = 1
    agents: dict[str, AgentState] = Field(default_factory=dict)
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PIPELINE_STATUSES

    def status_counts(self) -> dict[str, int]:
        """Number of agents per AgentStatus."""
        return dict(Counter(agent.status for agent in self.agents.values()))

    def failed_agents(self) -> list[str]:
        return sorted(
            name for name, agent in self.agents.items() if agent.status == "failed"
        )
