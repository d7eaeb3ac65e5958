# src/executor/subprocess_executor.py — v1
"""Run an agent task as a CLI subprocess (default: ``claude -p``).

The task text is the final positional argument; the system prompt and
model are passed through configurable flags. stdout is streamed line by
line as progress, stderr is kept for the error message.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time

from agentswarm.executor.base_executor import BaseTaskExecutor
from agentswarm.executor.models import TaskRequest, TaskResult

logger = logging.getLogger(__name__)

DEFAULT_COMMAND: list[str] = ["claude", "-p"]
DEFAULT_TERMINATE_GRACE_S = 5.0
READ_CHUNK_BYTES = 64 * 1024
ERROR_TAIL_CHARS = 2000
ABORTED_EXIT_CODE = 130


class SubprocessTaskExecutor(BaseTaskExecutor):
    """Spawn one agent CLI process per task.

    Args:
        command: Base argv, e.g. ["claude", "-p"].
        system_prompt_flag: Flag carrying the system prompt, None to omit it.
        model_flag: Flag carrying the model name, None to omit it.
        default_model: Model used when the request has no override.
        timeout_s: Optional wall-clock limit per task.
        env: Extra environment variables for the child.
        terminate_grace_s: Delay between SIGTERM and SIGKILL when stopping.
    """

    def __init__(
        self,
        command: list[str] | None = None,
        system_prompt_flag: str | None = "--append-system-prompt",
        model_flag: str | None = "--model",
        default_model: str | None = None,
        timeout_s: float | None = None,
        env: dict[str, str] | None = None,
        terminate_grace_s: float = DEFAULT_TERMINATE_GRACE_S,
    ) -> None:
        self._command = list(command or DEFAULT_COMMAND)
        self._system_prompt_flag = system_prompt_flag
        self._model_flag = model_flag
        self._default_model = default_model or None
        self._timeout_s = timeout_s
        self._env = dict(env or {})
        self._terminate_grace_s = terminate_grace_s

    @property
    def executor_name(self) -> str:
        return "subprocess"

    def build_argv(self, request: TaskRequest) -> list[str]:
        argv = list(self._command)
        if self._system_prompt_flag and request.system_prompt:
            argv += [self._system_prompt_flag, request.system_prompt]
        model = request.model_override or self._default_model
        if self._model_flag and model:
            argv += [self._model_flag, model]
        argv.append(request.task)
        return argv

    def build_env(self, request: TaskRequest) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self._env)
        env["SWARM_AGENT_NAME"] = request.agent_name
        env["SWARM_AGENT_ID"] = request.agent_id
        if request.artifacts_dir is not None:
            env["SWARM_ARTIFACTS_DIR"] = str(request.artifacts_dir)
        return env

    async def run(self, request: TaskRequest) -> TaskResult:
        if request.aborted:
            return TaskResult(
                agent_id=request.agent_id,
                exit_code=ABORTED_EXIT_CODE,
                error="aborted before start",
                aborted=True,
            )

        start_ns = time.monotonic_ns()
        argv = self.build_argv(request)
        logger.debug("Spawning %s for agent '%s'", argv[0], request.agent_name)

        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(request.cwd),
            env=self.build_env(request),
        )

        output_lines: list[str] = []
        stdout_task = asyncio.create_task(self._pump_stdout(process, request, output_lines))
        stderr_task = asyncio.create_task(process.stderr.read())  # type: ignore[union-attr]
        wait_task = asyncio.create_task(process.wait())
        abort_task: asyncio.Task[bool] | None = None
        waiters: set[asyncio.Task] = {wait_task}
        if request.abort_event is not None:
            abort_task = asyncio.create_task(request.abort_event.wait())
            waiters.add(abort_task)

        aborted = False
        timed_out = False
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self._timeout_s,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if wait_task not in done:
                if abort_task is not None and abort_task in done:
                    aborted = True
                else:
                    timed_out = True
                await self._stop(process)

            returncode = await wait_task
            await stdout_task
            stderr_text = (await stderr_task).decode("utf-8", errors="replace")
        except asyncio.CancelledError:
            await self._stop(process)
            raise
        finally:
            if abort_task is not None and not abort_task.done():
                abort_task.cancel()

        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        error: str | None = None
        if aborted:
            error = "aborted"
        elif timed_out:
            error = f"timed out after {self._timeout_s}s"
        elif returncode != 0:
            error = stderr_text.strip()[-ERROR_TAIL_CHARS:] or f"exit code {returncode}"

        exit_code = returncode
        if (aborted or timed_out) and exit_code == 0:
            exit_code = ABORTED_EXIT_CODE

        return TaskResult(
            agent_id=request.agent_id,
            exit_code=exit_code,
            output="\n".join(output_lines),
            error=error,
            duration_ms=duration_ms,
            aborted=aborted,
        )

    @staticmethod
    async def _pump_stdout(
        process: asyncio.subprocess.Process,
        request: TaskRequest,
        sink: list[str],
    ) -> None:
        """Drain stdout in chunks, emitting complete lines of any length."""
        assert process.stdout is not None
        pending = bytearray()
        while True:
            chunk = await process.stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            pending.extend(chunk)
            if b"\n" not in chunk:
                continue
            *lines, rest = pending.split(b"\n")
            pending = bytearray(rest)
            for raw in lines:
                _emit_line(bytes(raw), request, sink)
        if pending:
            _emit_line(bytes(pending), request, sink)

    async def _stop(self, process: asyncio.subprocess.Process) -> None:
        """SIGTERM, then SIGKILL after the grace period."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self._terminate_grace_s)
        except asyncio.TimeoutError:
            logger.warning("Process %d ignored SIGTERM, killing", process.pid)
            process.kill()
            await process.wait()


def _emit_line(raw: bytes, request: TaskRequest, sink: list[str]) -> None:
    line = raw.decode("utf-8", errors="replace").rstrip("\r")
    sink.append(line)
    try:
        request.emit(line)
    except Exception:
        logger.warning("Progress handler raised for %s", request.agent_id, exc_info=True)
