# src/pipeline/agent_executor.py — v1
"""Run one swarm agent through a task executor and record the outcome.

Expected outcomes (exit code zero or not) become agent state updates and
are returned. Exceptions from the executor are recorded as a failure and
re-raised to the controller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from agentswarm.executor.models import TaskProgress, TaskRequest, TaskResult
from agentswarm.logging.context import set_agent_context
from agentswarm.pipeline.state import utc_now

if TYPE_CHECKING:
    from agentswarm.core.models import AgentDefinition
    from agentswarm.executor.base_executor import BaseTaskExecutor
    from agentswarm.storage.state_tracker import StateTracker

logger = logging.getLogger(__name__)

AgentProgressCallback = Callable[[str, TaskProgress], None]


@dataclass
class AgentRunOptions:
    """Shared per-iteration context for every agent of a run."""

    workspace: Path
    swarm_name: str
    iteration: int
    executor: BaseTaskExecutor
    state_tracker: StateTracker
    model_override: str | None = None
    abort_event: asyncio.Event | None = None
    on_progress: AgentProgressCallback | None = None
    executor_options: dict[str, Any] = field(default_factory=dict)


def build_system_prompt(agent: AgentDefinition) -> str:
    """Role statement followed by any extra context."""
    parts = [f"You are a {agent.role}."]
    if agent.extra_context:
        parts.append(agent.extra_context)
    return "\n\n".join(parts)


def build_agent_id(swarm_name: str, agent_name: str, iteration: int) -> str:
    return f"swarm-{swarm_name}-{agent_name}-{iteration}"


async def execute_swarm_agent(
    agent: AgentDefinition,
    index: int,
    options: AgentRunOptions,
) -> TaskResult:
    """Execute a single agent for one iteration.

    Args:
        agent: The agent definition to run.
        index: Position of the agent within its wave.
        options: Shared run context.

    Returns:
        The executor's TaskResult, success or failure.

    Raises:
        Exception: Whatever the executor raised, after recording it.
        asyncio.CancelledError: After recording the agent as failed.
        StatePersistenceError: If the agent state cannot be written.
    """
    tracker = options.state_tracker
    iteration = options.iteration
    set_agent_context(agent.name)

    await tracker.update_agent(
        agent.name,
        status="running",
        iteration=iteration,
        started_at=utc_now(),
        completed_at=None,
        error=None,
    )
    tracker.append_log(agent.name, f"Starting iteration {iteration}")

    on_progress = options.on_progress

    def forward(progress: TaskProgress) -> None:
        if on_progress is not None:
            on_progress(agent.name, progress)

    request = TaskRequest(
        cwd=options.workspace,
        agent_name=agent.name,
        agent_id=build_agent_id(options.swarm_name, agent.name, iteration),
        system_prompt=build_system_prompt(agent),
        task=agent.task,
        index=index,
        artifacts_dir=tracker.context_dir,
        model_override=options.model_override,
        abort_event=options.abort_event,
        on_progress=forward,
        options=dict(options.executor_options),
    )

    try:
        result = await options.executor.run(request)
    except asyncio.CancelledError:
        await tracker.update_agent(
            agent.name, status="failed", completed_at=utc_now(), error="cancelled",
        )
        tracker.append_log(agent.name, f"Iteration {iteration} cancelled")
        logger.warning("Agent '%s' cancelled during iteration %d", agent.name, iteration)
        raise
    except Exception as exc:
        error = str(exc) or type(exc).__name__
        await tracker.update_agent(
            agent.name, status="failed", completed_at=utc_now(), error=error,
        )
        tracker.append_log(agent.name, f"Iteration {iteration} error: {error}")
        logger.error("Agent '%s' raised during iteration %d: %s", agent.name, iteration, error)
        raise

    if result.succeeded:
        status = "completed"
        error = result.error
    else:
        status = "failed"
        error = result.error or f"exit code {result.exit_code}"
        result = result.model_copy(update={"error": error})

    await tracker.update_agent(
        agent.name, status=status, completed_at=utc_now(), error=error,
    )
    tracker.append_log(
        agent.name,
        f"Iteration {iteration} {status}" + (f": {error}" if error else ""),
    )
    logger.info(
        "Agent '%s' %s (iteration %d, exit=%d, %dms)",
        agent.name, status, iteration, result.exit_code, result.duration_ms,
    )
    return result
