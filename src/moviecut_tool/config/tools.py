"""
External tool command lines.

This is "code as configuration" - modify this file to change how the
downloader, comment fetcher, speech engine and silence cutter are invoked.
"""

from __future__ import annotations

from pathlib import Path

from ..models import ToolInvocation, TranscriptionRequest
from .settings import (
    get_chat_downloader_dir,
    get_project_dir,
    get_python_path,
    get_script_library_dir,
    get_whisper_binary,
    get_whisper_model,
)

YTDLP_NAME = "yt-dlp"

# 720p or lower keeps downloads small enough for quick editing
YTDLP_FORMAT = "best[height<=720]/best"

COMMENTS_JSON_NAME = "comments_raw.json"
COMMENTS_CSV_NAME = "comments.csv"


def build_ytdlp_invocation(url: str, output_dir: Path) -> ToolInvocation:
    """
    Build the yt-dlp command for a single video.

    Args:
        url: Video URL
        output_dir: Job directory the file is written into

    Returns:
        ToolInvocation using the resolved yt-dlp executable
    """
    # Import here to avoid circular imports
    from ..core.resolver import resolve_executable

    resolved = resolve_executable(YTDLP_NAME)
    return ToolInvocation(
        executable=resolved.path,
        args=(
            url,
            "-f", YTDLP_FORMAT,
            "-o", f"{output_dir}/%(title)s.%(ext)s",
            "--no-playlist",
            "--merge-output-format", "mp4",
            "--live-from-start",
            "--progress",
        ),
        searched=resolved.searched,
    )


def build_chat_downloader_invocation(url: str, json_path: Path) -> ToolInvocation:
    """Build the chat-downloader command writing the raw comment export to ``json_path``."""
    return ToolInvocation(
        executable=str(get_python_path()),
        args=("-m", "chat_downloader", url, "-o", str(json_path)),
        env={"PYTHONPATH": str(get_chat_downloader_dir())},
        cwd=str(get_project_dir()),
    )


def build_whisper_invocation(request: TranscriptionRequest) -> ToolInvocation:
    """Build the whisper.cpp command producing ``<output_base>.srt``."""
    return ToolInvocation(
        executable=str(get_whisper_binary()),
        args=(
            "-m", str(get_whisper_model()),
            "-l", request.language,
            "-f", str(request.input_path),
            "-osrt",
            "-of", str(request.output_base),
            "-pp",
        ),
    )


def format_noise(noise_db: float) -> str:
    """Noise floor as passed on the command line (integer dB)."""
    return f"{noise_db:.0f}"


def format_min_duration(min_duration: float) -> str:
    """Minimum silence length as passed on the command line (one decimal)."""
    return f"{min_duration:.1f}"


def build_jetcut_invocation(
    input_path: Path,
    output_path: Path,
    noise_db: float,
    min_duration: float,
) -> ToolInvocation:
    """Build the ``vedit.jetcut`` silence trimming command."""
    return ToolInvocation(
        executable=str(get_python_path()),
        args=(
            "-m", "vedit.jetcut",
            "-i", str(input_path),
            "-o", str(output_path),
            "--noise", format_noise(noise_db),
            "--min-dur", format_min_duration(min_duration),
        ),
        env={"PYTHONPATH": str(get_script_library_dir())},
        cwd=str(get_project_dir()),
    )
