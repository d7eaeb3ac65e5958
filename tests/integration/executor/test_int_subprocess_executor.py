# tests/integration/executor/test_int_subprocess_executor.py — v1
"""Integration tests for SubprocessTaskExecutor against real child processes.

The child is the current Python interpreter running a short script; the
task text arrives as the last argv entry.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from agentswarm.executor.models import TaskProgress, TaskRequest
from agentswarm.executor.subprocess_executor import (
    ABORTED_EXIT_CODE,
    SubprocessTaskExecutor,
)


def _executor(script: str, **kwargs) -> SubprocessTaskExecutor:
    return SubprocessTaskExecutor(
        command=[sys.executable, "-c", script],
        system_prompt_flag=None,
        model_flag=None,
        terminate_grace_s=2.0,
        **kwargs,
    )


def _request(tmp_path: Path, **kwargs) -> TaskRequest:
    defaults = dict(
        cwd=tmp_path,
        agent_name="writer",
        agent_id="swarm-int-writer-1",
        system_prompt="You are a writer.",
        task="hello task",
        artifacts_dir=tmp_path,
    )
    defaults.update(kwargs)
    return TaskRequest(**defaults)


ECHO = "import sys; print('got', sys.argv[-1]); print('second line')"
FAIL = "import sys; sys.stderr.write('disk full\\n'); sys.exit(3)"
SILENT_FAIL = "import sys; sys.exit(4)"
SLEEP = "import time; print('started', flush=True); time.sleep(30)"
LONG_LINE = (
    "import sys; sys.stdout.write('x' * (3 * 1024 * 1024) + '\\n'); "
    "[print('line', i) for i in range(20000)]"
)
LONG_LINE_ONLY = "import sys; sys.stdout.write('y' * (2 * 1024 * 1024))"
WRITE_ENV = (
    "import os, pathlib; "
    "pathlib.Path(os.environ['SWARM_ARTIFACTS_DIR'], os.environ['SWARM_AGENT_NAME'] + '.txt')"
    ".write_text(os.environ['SWARM_AGENT_ID'])"
)


class TestSubprocessExecutor:
    @pytest.mark.asyncio
    async def test_success_streams_output(self, tmp_path):
        progress: list[TaskProgress] = []
        result = await _executor(ECHO).run(_request(tmp_path, on_progress=progress.append))

        assert result.succeeded
        assert result.error is None
        assert result.output == "got hello task\nsecond line"
        assert [p.message for p in progress] == ["got hello task", "second line"]
        assert result.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_nonzero_exit_uses_stderr(self, tmp_path):
        result = await _executor(FAIL).run(_request(tmp_path))
        assert result.exit_code == 3
        assert result.error == "disk full"

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_stderr(self, tmp_path):
        result = await _executor(SILENT_FAIL).run(_request(tmp_path))
        assert result.exit_code == 4
        assert result.error == "exit code 4"

    @pytest.mark.asyncio
    async def test_environment_and_cwd(self, tmp_path):
        result = await _executor(WRITE_ENV).run(_request(tmp_path))
        assert result.succeeded
        assert (tmp_path / "writer.txt").read_text() == "swarm-int-writer-1"

    @pytest.mark.asyncio
    async def test_pre_aborted_never_spawns(self, tmp_path):
        abort = asyncio.Event()
        abort.set()
        result = await _executor(WRITE_ENV).run(_request(tmp_path, abort_event=abort))
        assert result.aborted is True
        assert result.exit_code == ABORTED_EXIT_CODE
        assert not (tmp_path / "writer.txt").exists()

    @pytest.mark.asyncio
    async def test_abort_stops_running_process(self, tmp_path):
        abort = asyncio.Event()

        def on_progress(progress: TaskProgress) -> None:
            if progress.message == "started":
                abort.set()

        result = await asyncio.wait_for(
            _executor(SLEEP).run(
                _request(tmp_path, abort_event=abort, on_progress=on_progress)
            ),
            timeout=10,
        )
        assert result.aborted is True
        assert result.error == "aborted"
        assert not result.succeeded

    @pytest.mark.asyncio
    async def test_timeout(self, tmp_path):
        result = await asyncio.wait_for(
            _executor(SLEEP, timeout_s=0.5).run(_request(tmp_path)),
            timeout=10,
        )
        assert not result.succeeded
        assert result.aborted is False
        assert result.error.startswith("timed out after 0.5")

    @pytest.mark.asyncio
    async def test_missing_binary_raises(self, tmp_path):
        executor = SubprocessTaskExecutor(command=["definitely-not-a-real-agent-cli"])
        with pytest.raises(FileNotFoundError):
            await executor.run(_request(tmp_path))

    @pytest.mark.asyncio
    async def test_line_longer_than_stream_buffer(self, tmp_path):
        progress: list[TaskProgress] = []
        result = await asyncio.wait_for(
            _executor(LONG_LINE).run(_request(tmp_path, on_progress=progress.append)),
            timeout=30,
        )

        assert result.succeeded
        lines = result.output.split("\n")
        assert len(lines) == 20001
        assert len(lines[0]) == 3 * 1024 * 1024
        assert lines[-1] == "line 19999"
        assert len(progress) == 20001

    @pytest.mark.asyncio
    async def test_long_output_without_newline(self, tmp_path):
        result = await asyncio.wait_for(
            _executor(LONG_LINE_ONLY).run(_request(tmp_path)), timeout=30,
        )
        assert result.succeeded
        assert result.output == "y" * (2 * 1024 * 1024)

    @pytest.mark.asyncio
    async def test_failing_progress_handler_keeps_draining(self, tmp_path):
        def broken(progress: TaskProgress) -> None:
            raise RuntimeError("renderer gone")

        result = await asyncio.wait_for(
            _executor(LONG_LINE).run(_request(tmp_path, on_progress=broken)),
            timeout=30,
        )
        assert result.succeeded
        assert result.output.endswith("line 19999")
