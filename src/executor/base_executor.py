# src/executor/base_executor.py — v1
"""Abstract task executor interface.

An executor runs one agent's task to completion and reports an exit code.
Expected failures are returned as a nonzero TaskResult; only unexpected
problems raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from agentswarm.executor.models import TaskRequest, TaskResult


class BaseTaskExecutor(ABC):
    """Unified interface for agent task backends."""

    @abstractmethod
    async def run(self, request: TaskRequest) -> TaskResult:
        """Execute the task described by request.

        Implementations should watch request.abort_event and stop their
        own work when it is set.
        """

    @property
    @abstractmethod
    def executor_name(self) -> str:
        """Backend identifier (e.g. subprocess)."""
