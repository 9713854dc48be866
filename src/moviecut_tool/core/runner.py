"""Subprocess execution with live output streaming into the log sink."""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import subprocess

from ..models import ProcessOutcome, ToolInvocation
from .errors import LaunchError, ToolExitError
from .log_sink import LogSink

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

# Seconds the stream readers get to reach EOF once the process has exited
DRAIN_GRACE_SECONDS = 2.0


def _build_env(invocation: ToolInvocation) -> dict[str, str]:
    env = dict(os.environ)
    env.update(invocation.env)
    return env


class _OutputChannel:
    """
    Collects stream increments for one invocation in arrival order.

    Once closed, late increments are dropped instead of reaching the sink.
    """

    def __init__(self, sink: LogSink | None):
        self._sink = sink
        self._parts: list[str] = []
        self.closed = False

    def push(self, text: str) -> None:
        if self.closed or not text:
            return
        self._parts.append(text)
        if self._sink is not None:
            self._sink.append(text)

    def close(self) -> str:
        self.closed = True
        return "".join(self._parts)


async def _drain(stream: asyncio.StreamReader, channel: _OutputChannel) -> None:
    """Forward everything readable from ``stream`` until EOF."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        data = await stream.read(READ_CHUNK_SIZE)
        if not data:
            channel.push(decoder.decode(b"", final=True))
            return
        channel.push(decoder.decode(data))


def _launch_error(invocation: ToolInvocation, error: OSError) -> LaunchError:
    if isinstance(error, FileNotFoundError):
        missing = invocation.executable
        if invocation.cwd and error.filename == invocation.cwd:
            missing = invocation.cwd
        return LaunchError(missing, "no such file or directory", invocation.searched)
    if isinstance(error, PermissionError):
        return LaunchError(invocation.executable, "permission denied", invocation.searched)
    return LaunchError(invocation.executable, str(error), invocation.searched)


async def _spawn(invocation: ToolInvocation) -> asyncio.subprocess.Process:
    try:
        return await asyncio.create_subprocess_exec(
            invocation.executable,
            *invocation.args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=_build_env(invocation),
            cwd=invocation.cwd,
        )
    except OSError as e:
        raise _launch_error(invocation, e) from e


async def run_streaming(invocation: ToolInvocation, sink: LogSink | None = None) -> ProcessOutcome:
    """
    Run a tool and stream stdout/stderr into ``sink`` as the data arrives.

    Termination is awaited without blocking the event loop. The readers are
    shut down before the outcome is built, so nothing reaches the sink for
    this invocation after the call returns.

    Args:
        invocation: What to launch
        sink: Log sink receiving interleaved output increments

    Returns:
        ProcessOutcome with the exit code and the full streamed text

    Raises:
        LaunchError: If the executable could not be started
    """
    logger.info(f"Launching: {' '.join(invocation.argv)}")
    process = await _spawn(invocation)

    channel = _OutputChannel(sink)
    readers = [
        asyncio.create_task(_drain(process.stdout, channel)),
        asyncio.create_task(_drain(process.stderr, channel)),
    ]

    exit_code = await process.wait()

    # A grandchild holding the pipe open must not keep us waiting forever
    done, pending = await asyncio.wait(readers, timeout=DRAIN_GRACE_SECONDS)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(f"{invocation.executable}: output pipes still open after exit, stopped reading")
    for task in done:
        if task.exception() is not None:
            logger.warning(f"{invocation.executable}: output reader failed: {task.exception()}")

    output = channel.close()
    logger.info(f"{invocation.executable} exited with code {exit_code}")
    return ProcessOutcome(exit_code=exit_code, output=output)


def run_blocking(invocation: ToolInvocation) -> ProcessOutcome:
    """
    Run a tool to completion with stderr merged into stdout.

    No incremental echo; callers on the event loop should use
    ``asyncio.to_thread(run_blocking, invocation)``.

    Raises:
        LaunchError: If the executable could not be started
    """
    logger.info(f"Running: {' '.join(invocation.argv)}")
    try:
        result = subprocess.run(
            invocation.argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=_build_env(invocation),
            cwd=invocation.cwd,
        )
    except OSError as e:
        raise _launch_error(invocation, e) from e

    output = result.stdout.decode("utf-8", errors="replace")
    logger.info(f"{invocation.executable} exited with code {result.returncode}")
    return ProcessOutcome(exit_code=result.returncode, output=output)


def require_success(outcome: ProcessOutcome, tool: str) -> ProcessOutcome:
    """Raise ToolExitError unless the outcome has exit code 0."""
    if not outcome.success:
        raise ToolExitError(tool, outcome.exit_code)
    return outcome
