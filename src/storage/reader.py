# src/storage/reader.py — v2
"""Read swarm runs from disk for inspection by another process.

No StateTracker instance is needed; these helpers never write.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from agentswarm.pipeline.state import SwarmState
from agentswarm.storage import layout

logger = logging.getLogger(__name__)


def load_swarm_state(run_path: Path) -> SwarmState | None:
    """Load the SwarmState snapshot of a run directory, None if unreadable."""
    path = layout.pipeline_state_path(run_path)
    if not path.exists():
        return None
    try:
        return SwarmState.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("Failed to load swarm state from %s: %s", path, e)
        return None


def find_swarm_runs(workspace: Path) -> list[Path]:
    """Run directories under a workspace, sorted by name."""
    workspace = Path(workspace)
    if not workspace.is_dir():
        return []
    return sorted(
        entry
        for entry in workspace.iterdir()
        if entry.is_dir() and layout.swarm_name_from_dir(entry) is not None
    )


def read_agent_log(run_path: Path, agent_name: str) -> list[str]:
    """Lines of an agent's append-only log, empty if it was never written."""
    path = layout.agent_log_path(run_path, agent_name)
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


def read_orchestrator_log(run_path: Path) -> list[str]:
    path = layout.orchestrator_log_path(run_path)
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()
