"""Silence trimming through the ``vedit.jetcut`` helper script."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ..config import get_silence_config
from ..config.tools import build_jetcut_invocation
from .errors import ToolError, ToolExitError
from .log_sink import LogSink
from .runner import run_blocking

logger = logging.getLogger(__name__)


def default_cut_path(input_path: Path) -> Path:
    """``<dir>/<stem>.cut.mp4`` for ``<dir>/<stem>.<ext>``."""
    return input_path.with_suffix(".cut.mp4")


async def cut_silence(
    input_path: str | Path,
    sink: LogSink,
    noise_db: float | None = None,
    min_duration: float | None = None,
    output_path: str | Path | None = None,
) -> dict[str, Any]:
    """
    Remove silent stretches from a video.

    The tool is short-running, so its combined output is collected at exit
    and appended to the log as one report.

    Args:
        input_path: Source video
        sink: Operator log
        noise_db: Noise floor in dB (rounded to an integer)
        min_duration: Minimum silence length in seconds (one decimal)
        output_path: Target file (default: ``<stem>.cut.mp4``)

    Returns:
        dict with success, output_path, exit_code and report
    """
    config = get_silence_config()
    noise_db = config["noise_db"] if noise_db is None else noise_db
    min_duration = config["min_duration"] if min_duration is None else min_duration

    input_path = Path(input_path)
    output_path = Path(output_path) if output_path else default_cut_path(input_path)

    sink.line("")
    sink.line("Starting silence cut...")

    invocation = build_jetcut_invocation(input_path, output_path, noise_db, min_duration)
    try:
        # Run in thread pool to avoid blocking event loop
        outcome = await asyncio.to_thread(run_blocking, invocation)
    except ToolError as e:
        logger.warning(f"Silence cut failed to start for {input_path}: {e}")
        sink.line(f"Error: {e}")
        return {
            "success": False,
            "error": str(e),
        }

    sink.append(outcome.output)

    if not outcome.success:
        error = ToolExitError("jetcut", outcome.exit_code)
        sink.line(f"Error: {error}")
        return {
            "success": False,
            "error": str(error),
            "exit_code": outcome.exit_code,
            "report": outcome.output,
        }

    sink.line("")
    sink.line("Processing complete!")
    sink.line(f"Output file: {output_path}")
    return {
        "success": True,
        "output_path": str(output_path),
        "exit_code": outcome.exit_code,
        "report": outcome.output,
    }
