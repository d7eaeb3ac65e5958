# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

A swarm definition arrives here already parsed and validated by the
caller; these models only carry it. No module redefines these types.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

SwarmMode = Literal["pipeline", "sequential", "parallel"]

# Modes in which declaration order implies a chain when nothing else does.
ORDERED_MODES: frozenset[str] = frozenset({"pipeline", "sequential"})


# === AGENTS ===


class AgentDefinition(BaseModel):
    """One worker agent of a swarm.

    waits_for lists agents this one depends on directly. reports_to is the
    inverse relation: every agent named there waits for this one.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    role: str
    task: str
    extra_context: str | None = None
    waits_for: list[str] = Field(default_factory=list)
    reports_to: list[str] = Field(default_factory=list)


# === SWARM ===


class SwarmDefinition(BaseModel):
    """A complete, immutable swarm pipeline definition."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    mode: SwarmMode = "sequential"
    target_count: int = Field(default=1, ge=1)
    workspace: Path = Path(".")
    model: str | None = None
    agents: dict[str, AgentDefinition] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_agent_keys(self) -> SwarmDefinition:
        """Every agent must be keyed by its own name."""
        for key, agent in self.agents.items():
            if key != agent.name:
                raise ValueError(
                    f"Agent key {key!r} does not match agent name {agent.name!r}"
                )
        return self

    @property
    def agent_order(self) -> list[str]:
        """Agent names in declaration order."""
        return list(self.agents)

    @classmethod
    def from_agents(
        cls,
        name: str,
        agents: list[AgentDefinition],
        **kwargs: object,
    ) -> SwarmDefinition:
        """Build a definition from an ordered list of agents."""
        return cls(
            name=name,
            agents={agent.name: agent for agent in agents},
            **kwargs,  # type: ignore[arg-type]
        )
