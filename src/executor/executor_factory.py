# src/executor/executor_factory.py — v1
"""Factory: instantiate a task executor from a backend name.

Called by the facade when the caller does not supply an executor.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any

from agentswarm.config.settings import Settings
from agentswarm.executor.base_executor import BaseTaskExecutor

logger = logging.getLogger(__name__)

# Registry of backend name -> executor class path (lazy import).
_EXECUTOR_REGISTRY: dict[str, str] = {
    "subprocess": "agentswarm.executor.subprocess_executor.SubprocessTaskExecutor",
}


class UnsupportedExecutorError(ValueError):
    """Raised when an executor backend is not registered."""


def create_executor(
    backend: str,
    settings: Settings | None = None,
    **kwargs: Any,
) -> BaseTaskExecutor:
    """Instantiate the executor registered under backend.

    Args:
        backend: Backend identifier (e.g. subprocess).
        settings: Application settings supplying backend defaults.
        **kwargs: Backend-specific arguments, taking precedence over settings.

    Raises:
        UnsupportedExecutorError: If backend is not registered.
    """
    if backend not in _EXECUTOR_REGISTRY:
        raise UnsupportedExecutorError(
            f"Unsupported executor backend: {backend!r}. "
            f"Available: {', '.join(sorted(_EXECUTOR_REGISTRY))}"
        )

    executor_cls = _import_class(_EXECUTOR_REGISTRY[backend])

    init_kwargs = dict(kwargs)
    if settings is not None and backend == "subprocess":
        init_kwargs.setdefault("command", settings.executor_command_list)
        init_kwargs.setdefault(
            "system_prompt_flag", settings.executor_system_prompt_flag or None
        )
        init_kwargs.setdefault("model_flag", settings.executor_model_flag or None)
        init_kwargs.setdefault("default_model", settings.executor_model or None)
        init_kwargs.setdefault("timeout_s", settings.executor_timeout_s)

    logger.debug("Creating task executor: backend=%s", backend)
    return executor_cls(**init_kwargs)


def create_executor_from_settings(settings: Settings) -> BaseTaskExecutor:
    return create_executor(settings.executor_backend, settings=settings)


def register_executor(name: str, class_path: str) -> None:
    """Register a custom executor backend.

    Args:
        name: Backend identifier.
        class_path: Fully qualified class path implementing BaseTaskExecutor.
    """
    _EXECUTOR_REGISTRY[name] = class_path
    logger.info("Registered executor backend: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
