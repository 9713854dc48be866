"""Japanese speech-to-text with whisper.cpp, producing an SRT beside the media."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..config import get_whisper_binary, get_whisper_model
from ..config.tools import build_whisper_invocation
from ..models import TranscriptionRequest
from .errors import MissingArtifactError, MissingPrerequisiteError, ToolError
from .log_sink import LogSink
from .runner import require_success, run_streaming

logger = logging.getLogger(__name__)


def default_srt_path(input_path: Path) -> Path:
    """``<dir>/<stem>.srt`` for ``<dir>/<stem>.<ext>``."""
    return input_path.with_suffix(".srt")


def check_prerequisites(sink: LogSink) -> None:
    """
    Verify the engine binary and model file exist.

    Raises:
        MissingPrerequisiteError: For the first missing file
    """
    binary = get_whisper_binary()
    model = get_whisper_model()

    sink.line("")
    sink.line("Checking whisper paths...")
    sink.line(f"Executable: {binary}")
    sink.line(f"Model file: {model}")

    if not binary.exists():
        raise MissingPrerequisiteError("Whisper executable", binary)
    if not model.exists():
        raise MissingPrerequisiteError("Model file", model)


async def run_whisper(request: TranscriptionRequest, sink: LogSink) -> Path:
    """
    Run whisper.cpp for ``request`` and return the subtitle path.

    Raises:
        MissingPrerequisiteError: Engine or model absent (nothing launched)
        LaunchError: The engine could not be started
        ToolExitError: Nonzero exit status
        MissingArtifactError: Exit status 0 but no SRT written
    """
    check_prerequisites(sink)

    invocation = build_whisper_invocation(request)
    sink.line("")
    sink.line("Running whisper...")
    sink.line(f"Input: {request.input_path}")
    sink.line(f"Output: {request.srt_path}")

    outcome = await run_streaming(invocation, sink)
    require_success(outcome, "whisper")

    if not request.srt_path.exists():
        raise MissingArtifactError(request.srt_path)
    return request.srt_path


async def transcribe_video(
    input_path: str | Path,
    sink: LogSink,
    output_path: str | Path | None = None,
) -> dict[str, Any]:
    """
    Transcribe a media file to SRT subtitles.

    Args:
        input_path: Media file to transcribe
        sink: Operator log
        output_path: Target subtitle path (default: media path with .srt)

    Returns:
        dict with success and srt_path, or error
    """
    input_path = Path(input_path)
    request = TranscriptionRequest(
        input_path=input_path,
        output_path=Path(output_path) if output_path else default_srt_path(input_path),
    )

    sink.line("")
    sink.line("Starting speech recognition...")

    try:
        srt_path = await run_whisper(request, sink)
    except ToolError as e:
        logger.warning(f"Transcription failed for {input_path}: {e}")
        sink.line(f"Speech recognition error: {e}")
        return {
            "success": False,
            "error": str(e),
        }

    sink.line("")
    sink.line(f"SRT file generated: {srt_path}")
    return {
        "success": True,
        "srt_path": str(srt_path),
    }
