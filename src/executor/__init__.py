"""Task executor backends: the seam between the swarm core and agent CLIs."""

from agentswarm.executor.base_executor import BaseTaskExecutor
from agentswarm.executor.models import TaskProgress, TaskRequest, TaskResult

__all__ = ["BaseTaskExecutor", "TaskProgress", "TaskRequest", "TaskResult"]
