# src/pipeline/dag_builder.py — v2
"""DAG builder: dependency graph, cycle detection and execution waves.

The dependency graph maps each agent name to the set of agent names it
depends on. Only names are stored in the edge sets; agent definitions are
looked up separately in the SwarmDefinition.

Edges come from three sources, in order:
  1. explicit waits_for declarations (unknown names are ignored)
  2. reports_to declarations, inverted (the target waits for the reporter)
  3. for pipeline/sequential mode only, and only when 1 and 2 produced no
     edge at all, a chain following declaration order
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import networkx as nx

from agentswarm.core.models import ORDERED_MODES, SwarmDefinition

logger = logging.getLogger(__name__)

DependencyGraph = dict[str, set[str]]


class DAGError(Exception):
    """Raised when a dependency graph cannot be scheduled."""


class CycleError(DAGError):
    """The dependency graph contains at least one cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Cycle detected involving agents: {', '.join(cycle)}")


class SchedulingError(DAGError):
    """No agent became ready although agents remain.

    Cannot happen for a graph that passed detect_cycles(); seeing it means
    the graph builder or the cycle detector is broken, not the input.
    """

    def __init__(self, remaining: list[str]) -> None:
        self.remaining = remaining
        super().__init__(
            f"Deadlock: agents [{', '.join(remaining)}] cannot make progress. "
            "This indicates a bug in cycle detection."
        )


@dataclass
class ExecutionPlan:
    """Precomputed schedule reused by every iteration of a run.

    waves is a list of levels: agents within a level have no mutual
    dependencies and run concurrently. Levels execute sequentially.
    """

    graph: DependencyGraph = field(default_factory=dict)
    waves: list[list[str]] = field(default_factory=list)

    @property
    def total_agents(self) -> int:
        return sum(len(wave) for wave in self.waves)

    @property
    def flat_order(self) -> list[str]:
        """Return a flat topological ordering (no concurrency info)."""
        return [agent for wave in self.waves for agent in wave]

    def wave_of(self, agent: str) -> int:
        """Index of the wave an agent belongs to."""
        for index, wave in enumerate(self.waves):
            if agent in wave:
                return index
        raise KeyError(agent)

    def describe(self) -> str:
        """One-line summary, e.g. ``W1:[a,b] -> W2:[c]``."""
        return " -> ".join(
            f"W{i + 1}:[{','.join(wave)}]" for i, wave in enumerate(self.waves)
        )


def build_dependency_graph(definition: SwarmDefinition) -> DependencyGraph:
    """Build the agent -> dependencies map for a swarm definition.

    Never fails. The result may be edge-free, and may contain cycles;
    run detect_cycles() before scheduling.
    """
    deps: DependencyGraph = {name: set() for name in definition.agents}

    for name, agent in definition.agents.items():
        for dep in agent.waits_for:
            if dep in deps:
                deps[name].add(dep)

    for name, agent in definition.agents.items():
        for target in agent.reports_to:
            if target in deps:
                deps[target].add(name)

    if definition.mode in ORDERED_MODES and not has_edges(deps):
        order = definition.agent_order
        for previous, current in zip(order, order[1:]):
            deps[current].add(previous)
        if len(order) > 1:
            logger.debug(
                "No declared dependencies in %s mode, chaining %d agents by declaration order",
                definition.mode,
                len(order),
            )

    return deps


def has_edges(graph: Mapping[str, set[str]]) -> bool:
    return any(graph.values())


def detect_cycles(graph: Mapping[str, set[str]]) -> list[str] | None:
    """Return the agents left over by Kahn's algorithm, or None if acyclic.

    The leftover set contains every agent on a cycle plus every agent that
    (transitively) depends on one. Order follows the graph's key order.
    """
    in_degree: dict[str, int] = {}
    dependents: dict[str, list[str]] = {node: [] for node in graph}

    for node, node_deps in graph.items():
        in_degree[node] = len(node_deps)
        for dep in node_deps:
            dependents.setdefault(dep, []).append(node)

    queue = deque(node for node, degree in in_degree.items() if degree == 0)
    removed: set[str] = set()

    while queue:
        node = queue.popleft()
        removed.add(node)
        for dependent in dependents.get(node, []):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(removed) < len(graph):
        return [node for node in graph if node not in removed]
    return None


def build_execution_waves(graph: Mapping[str, set[str]]) -> list[list[str]]:
    """Level an acyclic graph into execution waves.

    Each wave holds exactly the agents whose dependencies all sit in
    earlier waves, sorted by name so log and state ordering is stable.

    Raises:
        SchedulingError: If a pass schedules nothing while agents remain.
    """
    waves: list[list[str]] = []
    scheduled: set[str] = set()
    remaining = set(graph)

    while remaining:
        wave = sorted(node for node in remaining if graph[node] <= scheduled)
        if not wave:
            raise SchedulingError(sorted(remaining))
        remaining.difference_update(wave)
        scheduled.update(wave)
        waves.append(wave)

    return waves


def build_execution_plan(definition: SwarmDefinition) -> ExecutionPlan:
    """Graph -> cycle gate -> waves for a definition.

    Raises:
        CycleError: If the dependency graph is cyclic.
        SchedulingError: If wave leveling makes no progress.
    """
    graph = build_dependency_graph(definition)
    cycle = detect_cycles(graph)
    if cycle:
        raise CycleError(cycle)

    plan = ExecutionPlan(graph=graph, waves=build_execution_waves(graph))
    logger.info(
        "DAG built: %d agents in %d waves -> %s",
        plan.total_agents,
        len(plan.waves),
        plan.describe(),
    )
    return plan


# ------------------------------------------------------------------
# Export
# ------------------------------------------------------------------


def to_networkx(
    graph: Mapping[str, set[str]],
    waves: list[list[str]] | None = None,
) -> nx.DiGraph:
    """Convert to a DiGraph with edges pointing dependency -> dependent."""
    g = nx.DiGraph()
    g.add_nodes_from(graph)
    for node, node_deps in graph.items():
        for dep in sorted(node_deps):
            g.add_edge(dep, node)
    for index, wave in enumerate(waves or []):
        for node in wave:
            g.nodes[node]["wave"] = index
    return g


def export_graphml(plan: ExecutionPlan, output_path: Path) -> Path:
    """Write the plan's dependency graph as GraphML for inspection."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    nx.write_graphml(to_networkx(plan.graph, plan.waves), str(output_path))
    return output_path
