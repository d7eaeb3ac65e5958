# tests/unit/tracking/test_stats.py — v1
"""Tests for tracking/stats.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from agentswarm.pipeline.state import AgentState, SwarmState
from agentswarm.tracking.stats import summarize_run

T0 = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


def _state(**kwargs) -> SwarmState:
    return SwarmState(
        name="docs",
        status=kwargs.pop("status", "running"),
        iteration=1,
        target_count=2,
        started_at=T0,
        agents={
            "a": AgentState(
                name="a", status="completed", iteration=1, wave=0,
                started_at=T0, completed_at=T0 + timedelta(seconds=2),
            ),
            "b": AgentState(
                name="b", status="failed", iteration=1, wave=1,
                started_at=T0 + timedelta(seconds=2),
                completed_at=T0 + timedelta(seconds=3),
                error="b broke",
            ),
            "c": AgentState(name="c"),
        },
        **kwargs,
    )


class TestSummarizeRun:
    def test_counts_and_progress(self):
        stats = summarize_run(_state(), now=T0 + timedelta(seconds=10))
        assert stats.status_counts == {"completed": 1, "failed": 1, "pending": 1}
        assert round(stats.progress_pct, 2) == 33.33
        assert stats.target_count == 2

    def test_agent_durations(self):
        stats = summarize_run(_state(), now=T0)
        assert stats.agents["a"].duration_ms == 2000
        assert stats.agents["b"].duration_ms == 1000
        assert stats.agents["b"].error == "b broke"
        assert stats.agents["c"].duration_ms is None

    def test_elapsed_running_uses_now(self):
        stats = summarize_run(_state(), now=T0 + timedelta(seconds=10))
        assert stats.elapsed_ms == 10_000

    def test_elapsed_finished_uses_completed_at(self):
        state = _state(status="failed", completed_at=T0 + timedelta(seconds=4))
        stats = summarize_run(state, now=T0 + timedelta(hours=1))
        assert stats.elapsed_ms == 4000

    def test_empty_run(self):
        stats = summarize_run(SwarmState(name="empty"))
        assert stats.progress_pct == 0.0
        assert stats.agents == {}
