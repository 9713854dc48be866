"""Core functionality for moviecut-tool."""

from ..models import format_timestamp
from .artifacts import derive_job_id, extract_video_id, find_latest_video, list_directory
from .comments import (
    comments_to_csv,
    convert_comments_to_csv,
    download_comments,
    escape_csv_field,
    load_comments,
    normalize_comments,
)
from .download import download_video
from .errors import (
    CommentParseError,
    LaunchError,
    MissingArtifactError,
    MissingPrerequisiteError,
    ToolError,
    ToolExitError,
)
from .log_sink import LogSink
from .resolver import resolve_executable
from .runner import run_blocking, run_streaming
from .silence_cut import cut_silence
from .transcribe import transcribe_video
from .workflow import Workflow, get_workflow

__all__ = [
    "download_video",
    "download_comments",
    "transcribe_video",
    "cut_silence",
    # Comment normalization
    "normalize_comments",
    "load_comments",
    "convert_comments_to_csv",
    "comments_to_csv",
    "escape_csv_field",
    "format_timestamp",
    # Artifacts and job ids
    "derive_job_id",
    "extract_video_id",
    "find_latest_video",
    "list_directory",
    # Process execution
    "LogSink",
    "resolve_executable",
    "run_streaming",
    "run_blocking",
    # Errors
    "ToolError",
    "LaunchError",
    "ToolExitError",
    "MissingPrerequisiteError",
    "MissingArtifactError",
    "CommentParseError",
    # Workflow
    "Workflow",
    "get_workflow",
]
