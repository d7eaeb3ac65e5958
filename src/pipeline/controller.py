# src/pipeline/controller.py — v1
"""Pipeline controller: replay the execution waves for every iteration.

Walks the ExecutionPlan wave by wave, running every agent of a wave
concurrently and waiting for all of them before the next wave starts.

Supports:
  - Fail-fast within an iteration (later waves are not launched)
  - Halting the run on the first failed iteration, or continuing
  - An optional cap on concurrently running agents
  - Cooperative cancellation through a shared asyncio.Event
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from agentswarm.executor.models import TaskResult
from agentswarm.logging.context import (
    get_context,
    restore_context,
    set_iteration_context,
    set_run_context,
)
from agentswarm.pipeline.agent_executor import (
    AgentProgressCallback,
    AgentRunOptions,
    execute_swarm_agent,
)
from agentswarm.pipeline.state import PipelineStatus, SwarmState, utc_now
from agentswarm.storage.state_tracker import StatePersistenceError

if TYPE_CHECKING:
    from agentswarm.core.models import SwarmDefinition
    from agentswarm.executor.base_executor import BaseTaskExecutor
    from agentswarm.pipeline.dag_builder import ExecutionPlan
    from agentswarm.storage.state_tracker import StateTracker

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SwarmState], None]


@dataclass
class RunResult:
    """Result of a full swarm run."""

    status: PipelineStatus
    iterations: int = 0
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.status == "completed"


class PipelineController:
    """Execute a swarm's execution plan for target_count iterations.

    Args:
        definition: The swarm definition (agents are looked up by name).
        plan: Precomputed waves, reused by every iteration.
        state_tracker: Initialized tracker for this run.
        executor: Backend that runs individual agent tasks.
        halt_on_iteration_failure: Stop the run after the first failed
            iteration. When False, later iterations still run and the final
            status is failed.
        max_concurrent_agents: Cap on agents running at once within a
            wave. None or 0 means the wave size is the only bound.
    """

    def __init__(
        self,
        definition: SwarmDefinition,
        plan: ExecutionPlan,
        state_tracker: StateTracker,
        executor: BaseTaskExecutor,
        halt_on_iteration_failure: bool = True,
        max_concurrent_agents: int | None = None,
    ) -> None:
        self._definition = definition
        self._plan = plan
        self._tracker = state_tracker
        self._executor = executor
        self._halt_on_iteration_failure = halt_on_iteration_failure
        self._max_concurrent_agents = max_concurrent_agents or None
        self._semaphore: asyncio.Semaphore | None = None

    async def run(
        self,
        workspace: Path | None = None,
        on_progress: ProgressCallback | None = None,
        on_agent_progress: AgentProgressCallback | None = None,
        abort_event: asyncio.Event | None = None,
        model_override: str | None = None,
        executor_options: dict[str, Any] | None = None,
    ) -> RunResult:
        """Run every iteration and return the aggregate result.

        Args:
            workspace: Working directory for agents (default: definition's).
            on_progress: Called with a state snapshot after every wave.
            on_agent_progress: Receives (agent_name, TaskProgress) chunks.
            abort_event: Once set, no further wave or iteration is launched.
                In-flight agents see the same event and stop themselves.
            model_override: Model passed to every agent (default: definition's).
            executor_options: Opaque pass-through for the executor backend.

        Raises:
            StatePersistenceError: If the run state or logs cannot be written.
        """
        saved_context = get_context()
        try:
            return await self._run(
                workspace, on_progress, on_agent_progress,
                abort_event, model_override, executor_options,
            )
        finally:
            restore_context(saved_context)

    async def _run(
        self,
        workspace: Path | None,
        on_progress: ProgressCallback | None,
        on_agent_progress: AgentProgressCallback | None,
        abort_event: asyncio.Event | None,
        model_override: str | None,
        executor_options: dict[str, Any] | None,
    ) -> RunResult:
        start_ns = time.monotonic_ns()
        definition = self._definition
        target_count = definition.target_count
        set_run_context(definition.name)

        if self._max_concurrent_agents:
            self._semaphore = asyncio.Semaphore(self._max_concurrent_agents)

        errors: list[str] = []
        completed_iterations = 0
        all_succeeded = True

        self._tracker.append_orchestrator_log(
            f"Pipeline started: {target_count} iteration(s), waves {self._plan.describe()}"
        )
        logger.info(
            "Swarm '%s' starting: %d iteration(s), %d wave(s)",
            definition.name, target_count, len(self._plan.waves),
        )

        try:
            for iteration in range(1, target_count + 1):
                if _is_set(abort_event):
                    break

                await self._tracker.update_pipeline(iteration=iteration)
                self._tracker.append_orchestrator_log(
                    f"Iteration {iteration}/{target_count} started"
                )

                options = AgentRunOptions(
                    workspace=Path(workspace or definition.workspace),
                    swarm_name=definition.name,
                    iteration=iteration,
                    executor=self._executor,
                    state_tracker=self._tracker,
                    model_override=model_override or definition.model,
                    abort_event=abort_event,
                    on_progress=on_agent_progress,
                    executor_options=dict(executor_options or {}),
                )
                succeeded = await self._run_iteration(options, errors, on_progress)

                if succeeded:
                    completed_iterations += 1
                    self._tracker.append_orchestrator_log(
                        f"Iteration {iteration}/{target_count} completed"
                    )
                    continue

                all_succeeded = False
                self._tracker.append_orchestrator_log(
                    f"Iteration {iteration}/{target_count} failed"
                )
                if self._halt_on_iteration_failure:
                    logger.error(
                        "Halting swarm '%s' after failed iteration %d",
                        definition.name, iteration,
                    )
                    break
        except asyncio.CancelledError:
            await self._finish("aborted", "Pipeline cancelled")
            raise
        except StatePersistenceError:
            logger.error("Swarm '%s' lost its run state", definition.name, exc_info=True)
            raise

        if _is_set(abort_event):
            status: PipelineStatus = "aborted"
        elif all_succeeded and completed_iterations == target_count:
            status = "completed"
        else:
            status = "failed"

        await self._finish(
            status,
            f"Pipeline {status}: {completed_iterations}/{target_count} iteration(s), "
            f"{len(errors)} error(s)",
        )

        result = RunResult(
            status=status,
            iterations=completed_iterations,
            errors=errors,
            duration_ms=(time.monotonic_ns() - start_ns) // 1_000_000,
        )
        logger.info(
            "Swarm '%s' %s: %d/%d iterations, %d errors, %dms",
            definition.name, status, completed_iterations, target_count,
            len(errors), result.duration_ms,
        )
        return result

    async def _run_iteration(
        self,
        options: AgentRunOptions,
        errors: list[str],
        on_progress: ProgressCallback | None,
    ) -> bool:
        """Run all waves of one iteration. Returns False on any failure or abort."""
        iteration = options.iteration

        for wave_index, wave in enumerate(self._plan.waves):
            if _is_set(options.abort_event):
                self._tracker.append_orchestrator_log(
                    f"Abort requested, wave {wave_index + 1} of iteration {iteration} not launched"
                )
                return False

            set_iteration_context(iteration, wave_index)
            for name in wave:
                await self._tracker.update_agent(
                    name, status="waiting", iteration=iteration, wave=wave_index,
                )
            self._tracker.append_orchestrator_log(
                f"Iteration {iteration} wave {wave_index + 1}/{len(self._plan.waves)}: "
                f"launching {', '.join(wave)}"
            )

            outcomes = await asyncio.gather(
                *(self._launch(name, index, options) for index, name in enumerate(wave)),
                return_exceptions=True,
            )

            failures = _collect_failures(wave, outcomes)
            for name, message in failures:
                errors.append(f"Iteration {iteration}, agent '{name}': {message}")

            self._notify(on_progress)

            if failures:
                self._tracker.append_orchestrator_log(
                    f"Iteration {iteration} wave {wave_index + 1} failed: "
                    f"{', '.join(name for name, _ in failures)}"
                )
                return False

        return True

    async def _launch(
        self,
        agent_name: str,
        index: int,
        options: AgentRunOptions,
    ) -> TaskResult:
        agent = self._definition.agents[agent_name]
        if self._semaphore is None:
            return await execute_swarm_agent(agent, index, options)
        async with self._semaphore:
            return await execute_swarm_agent(agent, index, options)

    def _notify(self, on_progress: ProgressCallback | None) -> None:
        if on_progress is None:
            return
        try:
            on_progress(self._tracker.state)
        except Exception:
            logger.warning("Progress callback raised", exc_info=True)

    async def _finish(self, status: PipelineStatus, message: str) -> None:
        await self._tracker.update_pipeline(status=status, completed_at=utc_now())
        self._tracker.append_orchestrator_log(message)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _is_set(event: asyncio.Event | None) -> bool:
    return event is not None and event.is_set()


def _collect_failures(
    wave: list[str],
    outcomes: list[TaskResult | BaseException],
) -> list[tuple[str, str]]:
    """Pair each failed agent of a wave with its error message.

    Raises:
        StatePersistenceError: If any agent could not record its state.
    """
    failures: list[tuple[str, str]] = []
    for outcome in outcomes:
        if isinstance(outcome, StatePersistenceError):
            raise outcome
    for name, outcome in zip(wave, outcomes):
        if isinstance(outcome, BaseException):
            failures.append((name, str(outcome) or type(outcome).__name__))
        elif not outcome.succeeded:
            failures.append((name, outcome.error or f"exit code {outcome.exit_code}"))
    return failures
