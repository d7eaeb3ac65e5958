# src/storage/layout.py — v2
"""Run directory structure definition.

One directory per swarm run, created under the workspace:

    <workspace>/.swarm_<name>/
        state/pipeline.json          full SwarmState snapshot
        state/dependencies.graphml   dependency graph export
        logs/<agent>.log             append-only per-agent lines
        logs/orchestrator.log        append-only run-wide lines
        context/                     artifacts dir handed to executors
"""

from __future__ import annotations

from pathlib import Path

SWARM_DIR_PREFIX = ".swarm_"

# Run-level directories under .swarm_<name>/
STATE_DIR = "state"
LOGS_DIR = "logs"
CONTEXT_DIR = "context"

PIPELINE_STATE_FILE = "pipeline.json"
GRAPH_EXPORT_FILE = "dependencies.graphml"
ORCHESTRATOR_LOG_FILE = "orchestrator.log"


def swarm_dir(workspace: Path, name: str) -> Path:
    """Return the run directory for a swarm."""
    return Path(workspace) / f"{SWARM_DIR_PREFIX}{name}"


def swarm_name_from_dir(run_path: Path) -> str | None:
    """Inverse of swarm_dir(): the swarm name, or None for other dirs."""
    if not run_path.name.startswith(SWARM_DIR_PREFIX):
        return None
    return run_path.name[len(SWARM_DIR_PREFIX):] or None


# --- Run-level paths ---

def state_dir(run_path: Path) -> Path:
    return run_path / STATE_DIR


def logs_dir(run_path: Path) -> Path:
    return run_path / LOGS_DIR


def context_dir(run_path: Path) -> Path:
    return run_path / CONTEXT_DIR


# --- Specific file paths ---

def pipeline_state_path(run_path: Path) -> Path:
    return state_dir(run_path) / PIPELINE_STATE_FILE


def graph_export_path(run_path: Path) -> Path:
    return state_dir(run_path) / GRAPH_EXPORT_FILE


def agent_log_path(run_path: Path, agent_name: str) -> Path:
    return logs_dir(run_path) / f"{agent_name}.log"


def orchestrator_log_path(run_path: Path) -> Path:
    return logs_dir(run_path) / ORCHESTRATOR_LOG_FILE


def ensure_run_directories(run_path: Path) -> None:
    """Create all standard directories for a new run."""
    for dir_fn in [state_dir, logs_dir, context_dir]:
        dir_fn(run_path).mkdir(parents=True, exist_ok=True)
