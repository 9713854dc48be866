"""Data models for moviecut-tool."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ToolInvocation(BaseModel):
    """One subprocess launch."""

    model_config = ConfigDict(frozen=True)

    executable: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None
    # Directories the resolver tried, kept for launch-failure messages
    searched: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


class ProcessOutcome(BaseModel):
    """Exit status and accumulated output of a finished subprocess."""

    exit_code: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class DownloadState(str, Enum):
    """Download pipeline state."""

    IDLE = "idle"
    FETCHING_MEDIA = "fetching-media"
    MEDIA_FOUND = "media-found"
    MEDIA_MISSING = "media-missing"
    FETCHING_COMMENTS = "fetching-comments"
    NORMALIZING_COMMENTS = "normalizing-comments"
    DONE = "done"
    COMMENT_ERROR = "comment-error"
    FAILED = "failed"


DOWNLOAD_TRANSITIONS: dict[DownloadState, set[DownloadState]] = {
    DownloadState.IDLE: {DownloadState.FETCHING_MEDIA},
    DownloadState.FETCHING_MEDIA: {
        DownloadState.MEDIA_FOUND,
        DownloadState.MEDIA_MISSING,
        DownloadState.FAILED,
    },
    DownloadState.MEDIA_FOUND: {DownloadState.FETCHING_COMMENTS, DownloadState.DONE},
    DownloadState.FETCHING_COMMENTS: {
        DownloadState.NORMALIZING_COMMENTS,
        DownloadState.COMMENT_ERROR,
    },
    DownloadState.NORMALIZING_COMMENTS: {DownloadState.DONE, DownloadState.COMMENT_ERROR},
    DownloadState.MEDIA_MISSING: set(),
    DownloadState.DONE: set(),
    DownloadState.COMMENT_ERROR: set(),
    DownloadState.FAILED: set(),
}


class DownloadJob(BaseModel):
    """A download job, alive for one pipeline run."""

    url: str
    output_dir: Path
    job_id: str
    state: DownloadState = DownloadState.IDLE
    exit_code: int | None = None
    media_path: Path | None = None
    comments_csv: Path | None = None
    comment_count: int | None = None
    files: list[str] = Field(default_factory=list)
    error: str | None = None
    comment_error: str | None = None

    def advance(self, state: DownloadState) -> None:
        """Move to ``state``, rejecting transitions the pipeline does not allow."""
        if state not in DOWNLOAD_TRANSITIONS[self.state]:
            raise ValueError(f"Illegal download transition: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def finished(self) -> bool:
        return not DOWNLOAD_TRANSITIONS[self.state]


class MediaArtifact(BaseModel):
    """A video file located on disk after a tool run."""

    path: Path
    created_at: float


def format_timestamp(seconds: float) -> str:
    """Format seconds as HH:MM:SS, truncating the fractional part."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class CommentRecord(BaseModel):
    """A single normalized chat comment."""

    timestamp: float = Field(ge=0)
    author: str = Field(min_length=1)
    message: str = Field(min_length=1)

    @property
    def clock(self) -> str:
        """Offset as HH:MM:SS."""
        return format_timestamp(self.timestamp)


class TranscriptionRequest(BaseModel):
    """Input media and target subtitle path for the speech engine."""

    input_path: Path
    output_path: Path
    language: Literal["ja"] = "ja"

    @property
    def output_base(self) -> Path:
        return self.output_path.with_suffix("")

    @property
    def srt_path(self) -> Path:
        return self.output_base.with_name(self.output_base.name + ".srt")
