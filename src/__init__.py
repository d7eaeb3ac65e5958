# src/__init__.py — v1
"""agentswarm: run dependency-ordered swarms of autonomous agents.

Usage:
    from agentswarm import SwarmDefinition, AgentDefinition, run_swarm
"""

from __future__ import annotations

from agentswarm.api.facade import prepare_plan, run_swarm
from agentswarm.core.models import AgentDefinition, SwarmDefinition
from agentswarm.pipeline.controller import RunResult
from agentswarm.pipeline.dag_builder import CycleError, DAGError, SchedulingError
from agentswarm.version import __version__

__all__ = [
    "AgentDefinition",
    "CycleError",
    "DAGError",
    "RunResult",
    "SchedulingError",
    "SwarmDefinition",
    "__version__",
    "prepare_plan",
    "run_swarm",
]
