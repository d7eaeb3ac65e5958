# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample swarm definitions, a scriptable stub executor and a
state tracker rooted in a temp directory.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import pytest

from agentswarm.core.models import AgentDefinition, SwarmDefinition
from agentswarm.executor.base_executor import BaseTaskExecutor
from agentswarm.executor.models import TaskRequest, TaskResult
from agentswarm.storage.state_tracker import StateTracker


class StubExecutor(BaseTaskExecutor):
    """Test executor with scripted per-agent outcomes.

    An outcome is an exit code, an exception to raise, or a callable
    receiving the request and returning either of those. Records every
    request and a start/end event trail so tests can check ordering and
    concurrency.
    """

    def __init__(
        self,
        outcomes: dict[str, Any] | None = None,
        delay: float = 0.0,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.delay = delay
        self.delays = delays or {}
        self.calls: list[TaskRequest] = []
        self.events: list[str] = []
        self.active = 0
        self.max_active = 0

    @property
    def executor_name(self) -> str:
        return "stub"

    @property
    def launched(self) -> list[str]:
        return [request.agent_name for request in self.calls]

    async def run(self, request: TaskRequest) -> TaskResult:
        self.calls.append(request)
        self.events.append(f"start:{request.agent_name}")
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(request.agent_name, self.delay))
            request.emit(f"working on {request.task}")

            outcome = self.outcomes.get(request.agent_name, 0)
            if callable(outcome) and not isinstance(outcome, BaseException):
                outcome = outcome(request)
            if isinstance(outcome, BaseException):
                raise outcome

            return TaskResult(
                agent_id=request.agent_id,
                exit_code=outcome,
                output=f"{request.agent_name} done",
                error=None if outcome == 0 else f"{request.agent_name} broke",
            )
        finally:
            self.active -= 1
            self.events.append(f"end:{request.agent_name}")


def make_agent(
    name: str,
    waits_for: list[str] | None = None,
    reports_to: list[str] | None = None,
    extra_context: str | None = None,
) -> AgentDefinition:
    return AgentDefinition(
        name=name,
        role=f"{name} specialist",
        task=f"Do the {name} work",
        extra_context=extra_context,
        waits_for=waits_for or [],
        reports_to=reports_to or [],
    )


# === FIXTURES ===


@pytest.fixture
def agent_factory() -> Callable[..., AgentDefinition]:
    return make_agent


@pytest.fixture
def executor_factory() -> type[StubExecutor]:
    return StubExecutor


@pytest.fixture
def chain_definition(tmp_path: Path) -> SwarmDefinition:
    """a -> b -> c via explicit waits_for."""
    return SwarmDefinition.from_agents(
        "chain",
        [
            make_agent("a"),
            make_agent("b", waits_for=["a"]),
            make_agent("c", waits_for=["b"]),
        ],
        mode="parallel",
        workspace=tmp_path,
    )


@pytest.fixture
def diamond_definition(tmp_path: Path) -> SwarmDefinition:
    """root -> (left, right) -> merge."""
    return SwarmDefinition.from_agents(
        "diamond",
        [
            make_agent("root"),
            make_agent("left", waits_for=["root"]),
            make_agent("right", waits_for=["root"]),
            make_agent("merge", waits_for=["left", "right"]),
        ],
        mode="parallel",
        workspace=tmp_path,
    )


@pytest.fixture
def tracker(tmp_path: Path) -> StateTracker:
    return StateTracker(tmp_path, "test")
