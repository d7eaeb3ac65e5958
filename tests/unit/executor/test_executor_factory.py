# tests/unit/executor/test_executor_factory.py — v1
"""Tests for executor/executor_factory.py and SubprocessTaskExecutor argv/env."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentswarm.config.settings import Settings
from agentswarm.executor import executor_factory
from agentswarm.executor.executor_factory import (
    UnsupportedExecutorError,
    create_executor,
    create_executor_from_settings,
    register_executor,
)
from agentswarm.executor.models import TaskRequest
from agentswarm.executor.subprocess_executor import SubprocessTaskExecutor


def _request(**kwargs) -> TaskRequest:
    defaults = dict(
        cwd=Path("/tmp"),
        agent_name="writer",
        agent_id="swarm-docs-writer-1",
        system_prompt="You are a writer.",
        task="Write docs",
    )
    defaults.update(kwargs)
    return TaskRequest(**defaults)


class TestCreateExecutor:
    def test_subprocess_default(self):
        executor = create_executor("subprocess")
        assert isinstance(executor, SubprocessTaskExecutor)
        assert executor.executor_name == "subprocess"

    def test_unknown_backend(self):
        with pytest.raises(UnsupportedExecutorError, match="Unsupported executor backend"):
            create_executor("carrier-pigeon")

    def test_settings_supply_defaults(self):
        settings = Settings(
            _env_file=None,
            executor_command="my-agent --quiet",
            executor_model="small",
            executor_system_prompt_flag="",
        )
        executor = create_executor("subprocess", settings=settings)
        argv = executor.build_argv(_request())
        assert argv == ["my-agent", "--quiet", "--model", "small", "Write docs"]

    def test_kwargs_override_settings(self):
        settings = Settings(_env_file=None, executor_command="my-agent")
        executor = create_executor("subprocess", settings=settings, command=["other"])
        assert executor.build_argv(_request())[0] == "other"

    def test_from_settings(self):
        executor = create_executor_from_settings(Settings(_env_file=None))
        assert isinstance(executor, SubprocessTaskExecutor)

    def test_register_custom_backend(self, monkeypatch):
        monkeypatch.setattr(executor_factory, "_EXECUTOR_REGISTRY", {})
        register_executor(
            "custom", "agentswarm.executor.subprocess_executor.SubprocessTaskExecutor"
        )
        assert isinstance(create_executor("custom"), SubprocessTaskExecutor)


class TestSubprocessArgv:
    def test_full_argv(self):
        executor = SubprocessTaskExecutor()
        argv = executor.build_argv(_request(model_override="large"))
        assert argv == [
            "claude", "-p",
            "--append-system-prompt", "You are a writer.",
            "--model", "large",
            "Write docs",
        ]

    def test_default_model_used_without_override(self):
        executor = SubprocessTaskExecutor(command=["agent"], default_model="small")
        assert executor.build_argv(_request()) == [
            "agent", "--append-system-prompt", "You are a writer.",
            "--model", "small", "Write docs",
        ]

    def test_flags_disabled(self):
        executor = SubprocessTaskExecutor(
            command=["agent"], system_prompt_flag=None, model_flag=None,
        )
        assert executor.build_argv(_request(model_override="large")) == ["agent", "Write docs"]

    def test_env(self, tmp_path):
        executor = SubprocessTaskExecutor(env={"EXTRA": "1"})
        env = executor.build_env(_request(artifacts_dir=tmp_path))
        assert env["SWARM_AGENT_NAME"] == "writer"
        assert env["SWARM_AGENT_ID"] == "swarm-docs-writer-1"
        assert env["SWARM_ARTIFACTS_DIR"] == str(tmp_path)
        assert env["EXTRA"] == "1"

    def test_env_without_artifacts_dir(self, monkeypatch):
        monkeypatch.delenv("SWARM_ARTIFACTS_DIR", raising=False)
        env = SubprocessTaskExecutor().build_env(_request())
        assert "SWARM_ARTIFACTS_DIR" not in env
