# src/tracking/stats.py — v1
"""Run statistics derived from a SwarmState snapshot.

Pure functions: usable from a progress callback during a run, or from a
second process on a snapshot read with storage.reader.load_swarm_state().
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from agentswarm.pipeline.state import SwarmState


class AgentRunStats(BaseModel):
    """Last known timing of one agent."""

    name: str
    status: str
    iteration: int
    wave: int
    duration_ms: int | None = None
    error: str | None = None


class RunStats(BaseModel):
    """Aggregate view of a swarm run."""

    name: str
    status: str
    iteration: int
    target_count: int
    status_counts: dict[str, int] = Field(default_factory=dict)
    agents: dict[str, AgentRunStats] = Field(default_factory=dict)
    elapsed_ms: int = 0

    @property
    def progress_pct(self) -> float:
        """Share of agents completed in the current iteration, in percent."""
        total = len(self.agents)
        if total == 0:
            return 0.0
        return 100.0 * self.status_counts.get("completed", 0) / total


def _elapsed_ms(start: datetime | None, end: datetime | None) -> int | None:
    if start is None or end is None:
        return None
    return max(0, int((end - start).total_seconds() * 1000))


def summarize_run(state: SwarmState, now: datetime | None = None) -> RunStats:
    """Aggregate a snapshot into RunStats.

    Args:
        state: Snapshot to summarize.
        now: Reference time for runs still in progress (default: utcnow).
    """
    now = now or datetime.now(timezone.utc)

    agents = {
        name: AgentRunStats(
            name=name,
            status=agent.status,
            iteration=agent.iteration,
            wave=agent.wave,
            duration_ms=_elapsed_ms(agent.started_at, agent.completed_at),
            error=agent.error,
        )
        for name, agent in state.agents.items()
    }

    return RunStats(
        name=state.name,
        status=state.status,
        iteration=state.iteration,
        target_count=state.target_count,
        status_counts=state.status_counts(),
        agents=agents,
        elapsed_ms=_elapsed_ms(state.started_at, state.completed_at or now) or 0,
    )
