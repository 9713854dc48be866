"""Locating tool output on disk and naming download jobs."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from ..models import MediaArtifact

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {"mp4", "mkv", "webm", "mov", "avi", "m4v", "flv"}

SHORT_LINK_MARKER = "youtu.be/"


def _creation_time(path: Path) -> float:
    """File creation time, or modification time where the platform has no birth time."""
    stat = path.stat()
    return getattr(stat, "st_birthtime", None) or stat.st_mtime


def _is_video(path: Path) -> bool:
    return path.suffix[1:].lower() in VIDEO_EXTENSIONS


def find_latest_video(directory: Path) -> MediaArtifact | None:
    """
    Find the most recently created video file in ``directory``.

    Hidden files are skipped. Among files sharing the newest creation time,
    the first in listing order wins.

    Returns:
        MediaArtifact, or None if the directory holds no video
    """
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.warning(f"Cannot list {directory}: {e}")
        return None

    latest: MediaArtifact | None = None
    for entry in entries:
        if entry.name.startswith(".") or not entry.is_file() or not _is_video(entry):
            continue
        try:
            created = _creation_time(entry)
        except OSError:
            continue
        if latest is None or created > latest.created_at:
            latest = MediaArtifact(path=entry, created_at=created)
    return latest


def list_directory(directory: Path) -> list[str]:
    """Sorted entry names of ``directory`` (empty if it cannot be listed)."""
    try:
        return sorted(os.listdir(directory))
    except OSError:
        return []


def extract_video_id(url: str) -> str | None:
    """
    Extract a video ID from a YouTube style URL.

    Handles ``...watch?v=<id>`` and ``https://youtu.be/<id>?...``.
    """
    values = parse_qs(urlparse(url).query).get("v")
    if values and values[0]:
        return values[0]

    if SHORT_LINK_MARKER in url:
        video_id = url.split(SHORT_LINK_MARKER, 1)[1].split("?", 1)[0]
        if video_id:
            return video_id

    return None


def derive_job_id(url: str, now: float | None = None) -> str:
    """Job ID for ``url``: the video ID, or a time-based ID when none can be extracted."""
    video_id = extract_video_id(url)
    if video_id:
        # The ID names a directory
        return video_id.replace("/", "_").replace("\\", "_")
    return f"video_{time.time() if now is None else now}"
