# src/api/facade.py — v1
"""Public API facade: single entry point for running a swarm.

Usage:
    from agentswarm.api.facade import run_swarm
    result = await run_swarm(definition)

The caller supplies an already-validated SwarmDefinition; parsing a
definition file and rendering progress belong to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agentswarm.config.settings import Settings
from agentswarm.executor.executor_factory import create_executor_from_settings
from agentswarm.pipeline.controller import PipelineController, RunResult
from agentswarm.pipeline.dag_builder import build_execution_plan, export_graphml
from agentswarm.storage import layout
from agentswarm.storage.state_tracker import StateTracker

if TYPE_CHECKING:
    from agentswarm.core.models import SwarmDefinition
    from agentswarm.executor.base_executor import BaseTaskExecutor
    from agentswarm.pipeline.agent_executor import AgentProgressCallback
    from agentswarm.pipeline.controller import ProgressCallback
    from agentswarm.pipeline.dag_builder import ExecutionPlan

logger = logging.getLogger(__name__)


def prepare_plan(definition: SwarmDefinition) -> ExecutionPlan:
    """Build the execution plan, refusing cyclic definitions.

    Raises:
        CycleError: If the dependency graph is cyclic.
        SchedulingError: If wave leveling makes no progress.
    """
    return build_execution_plan(definition)


def resolve_workspace(
    definition: SwarmDefinition,
    workspace: Path | None = None,
    settings: Settings | None = None,
) -> Path:
    """Explicit argument, then the definition's workspace resolved against
    SWARM_WORKSPACE when relative."""
    if workspace is not None:
        return Path(workspace).expanduser().resolve()
    path = Path(definition.workspace).expanduser()
    if not path.is_absolute() and settings is not None and settings.swarm_workspace:
        path = Path(settings.swarm_workspace).expanduser() / path
    return path.resolve()


async def run_swarm(
    definition: SwarmDefinition,
    executor: BaseTaskExecutor | None = None,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
    on_agent_progress: AgentProgressCallback | None = None,
    abort_event: asyncio.Event | None = None,
    workspace: Path | None = None,
    executor_options: dict[str, Any] | None = None,
) -> RunResult:
    """Run a swarm end-to-end and return its result.

    This is the main public API:
      1. Build the dependency graph, gate on cycles, level into waves
      2. Create the workspace and the run directory, seed the state
      3. Export the dependency graph next to the state snapshot
      4. Drive the controller for every iteration

    Args:
        definition: Parsed, validated swarm definition.
        executor: Task backend. Built from settings if None.
        settings: Global settings. Loaded from .env if None.
        on_progress: Called with a SwarmState snapshot at each wave boundary.
        on_agent_progress: Receives (agent_name, TaskProgress) chunks.
        abort_event: Set it to stop launching new waves.
        workspace: Overrides the definition's workspace.
        executor_options: Opaque pass-through for the executor backend.

    Returns:
        RunResult with final status, completed iterations and errors.

    Raises:
        CycleError: Before anything is written, for cyclic definitions.
    """
    settings = settings or Settings()
    plan = prepare_plan(definition)

    run_workspace = resolve_workspace(definition, workspace, settings)
    run_workspace.mkdir(parents=True, exist_ok=True)

    tracker = StateTracker(run_workspace, definition.name)
    await tracker.init(list(definition.agents), definition.target_count, definition.mode)
    export_graphml(plan, layout.graph_export_path(tracker.swarm_dir))

    logger.info(
        "Running swarm '%s' in %s (mode=%s, waves %s)",
        definition.name, run_workspace, definition.mode, plan.describe(),
    )

    controller = PipelineController(
        definition=definition,
        plan=plan,
        state_tracker=tracker,
        executor=executor or create_executor_from_settings(settings),
        halt_on_iteration_failure=settings.halt_on_iteration_failure,
        max_concurrent_agents=settings.concurrency_limit,
    )
    return await controller.run(
        workspace=run_workspace,
        on_progress=on_progress,
        on_agent_progress=on_agent_progress,
        abort_event=abort_event,
        executor_options=executor_options,
    )
