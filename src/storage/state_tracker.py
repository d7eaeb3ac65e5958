# src/storage/state_tracker.py — v1
"""Filesystem state tracker for swarm runs.

Sole owner of the on-disk run record. Every mutation rewrites the whole
SwarmState document before returning, so a reader of state/pipeline.json
always sees a complete, if possibly stale, snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from agentswarm.logging.handlers import append_timestamped_line
from agentswarm.pipeline.state import AgentState, SwarmState, utc_now
from agentswarm.storage import layout

logger = logging.getLogger(__name__)


class StatePersistenceError(OSError):
    """A run state or run log write failed. Always fatal to the run."""


class StateTracker:
    """Persist pipeline and per-agent state under ``.swarm_<name>/``.

    Mutations are serialized with an asyncio.Lock. By convention concurrent
    agent tasks only touch their own entry, but the lock does not rely on it.

    Args:
        workspace: Directory the run directory is created in.
        name: Swarm name, used for the run directory name.
    """

    def __init__(self, workspace: Path, name: str) -> None:
        self._swarm_dir = layout.swarm_dir(Path(workspace), name)
        self._state = SwarmState(name=name)
        self._lock = asyncio.Lock()

    @property
    def swarm_dir(self) -> Path:
        return self._swarm_dir

    @property
    def context_dir(self) -> Path:
        return layout.context_dir(self._swarm_dir)

    @property
    def state(self) -> SwarmState:
        """Deep copy of the current in-memory snapshot."""
        return self._state.model_copy(deep=True)

    async def init(self, agent_names: list[str], target_count: int, mode: str) -> None:
        """Create the run directories, seed agents as pending, mark running."""
        layout.ensure_run_directories(self._swarm_dir)

        async with self._lock:
            self._state.target_count = target_count
            self._state.mode = mode
            self._state.status = "running"
            self._state.started_at = utc_now()
            self._state.completed_at = None
            self._state.iteration = 0
            self._state.agents = {name: AgentState(name=name) for name in agent_names}
            self._persist()

        logger.debug(
            "Initialized run %s: %d agents, target_count=%d, mode=%s",
            self._state.name, len(agent_names), target_count, mode,
        )

    async def update_agent(self, name: str, **update: Any) -> None:
        """Merge fields into one agent's state. Unknown agents are ignored."""
        async with self._lock:
            agent = self._state.agents.get(name)
            if agent is None:
                return
            for key, value in update.items():
                setattr(agent, key, value)
            self._persist()

    async def update_pipeline(self, **update: Any) -> None:
        """Merge top-level fields (status, iteration, completed_at, ...)."""
        async with self._lock:
            for key, value in update.items():
                setattr(self._state, key, value)
            self._persist()

    def append_log(self, agent_name: str, message: str) -> None:
        """Append a line to logs/<agent>.log. Blocking, one short write."""
        self._append(layout.agent_log_path(self._swarm_dir, agent_name), message)

    def append_orchestrator_log(self, message: str) -> None:
        self._append(layout.orchestrator_log_path(self._swarm_dir), message)

    async def load(self) -> SwarmState | None:
        """Replace the in-memory state with the persisted snapshot.

        Returns:
            The loaded state, or None if the snapshot is absent or unreadable
            (the in-memory state is then left untouched).
        """
        path = layout.pipeline_state_path(self._swarm_dir)
        try:
            content = path.read_text(encoding="utf-8")
            loaded = SwarmState.model_validate_json(content)
        except (OSError, ValueError, ValidationError) as exc:
            logger.debug("No loadable state at %s: %s", path, exc)
            return None

        async with self._lock:
            self._state = loaded
        return self.state

    def _persist(self) -> None:
        """Atomically overwrite state/pipeline.json. Caller holds the lock."""
        path = layout.pipeline_state_path(self._swarm_dir)
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StatePersistenceError(
                f"Cannot persist run state to {path}: {exc}"
            ) from exc

    def _append(self, path: Path, message: str) -> None:
        try:
            append_timestamped_line(path, message)
        except OSError as exc:
            raise StatePersistenceError(f"Cannot append to {path}: {exc}") from exc
