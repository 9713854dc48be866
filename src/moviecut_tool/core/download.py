"""Video download pipeline: fetch media, locate the file, fetch and normalize comments."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..config import get_download_dir
from ..config.tools import COMMENTS_CSV_NAME, build_ytdlp_invocation
from ..models import DownloadJob, DownloadState
from .artifacts import derive_job_id, find_latest_video, list_directory
from .comments import convert_comments_to_csv, run_chat_downloader
from .errors import LaunchError, ToolError
from .log_sink import LogSink
from .runner import run_streaming

logger = logging.getLogger(__name__)

NO_FILE_FOUND = "no output file found"


def create_job(url: str, base_dir: Path | None = None) -> DownloadJob:
    """
    Create a job and its output directory.

    Structure: $DOWNLOAD_DIR/{job_id}/
    """
    job_id = derive_job_id(url)
    output_dir = (base_dir or get_download_dir()) / job_id
    output_dir.mkdir(parents=True, exist_ok=True)
    return DownloadJob(url=url, output_dir=output_dir, job_id=job_id)


async def _fetch_media(job: DownloadJob, sink: LogSink) -> None:
    job.advance(DownloadState.FETCHING_MEDIA)

    invocation = build_ytdlp_invocation(job.url, job.output_dir)
    sink.line(f"Using yt-dlp: {invocation.executable}")

    try:
        outcome = await run_streaming(invocation, sink)
    except LaunchError as e:
        job.error = str(e)
        job.advance(DownloadState.FAILED)
        return

    job.exit_code = outcome.exit_code
    if not outcome.success:
        # yt-dlp can fail on a post-processing step after the media landed
        logger.warning(f"yt-dlp exited with code {outcome.exit_code} for {job.url}")
        sink.line(f"yt-dlp exited with code {outcome.exit_code}")

    artifact = find_latest_video(job.output_dir)
    if artifact is None:
        job.files = list_directory(job.output_dir)
        job.error = NO_FILE_FOUND
        if not outcome.success:
            job.error += f" (yt-dlp exited with code {outcome.exit_code})"
        job.advance(DownloadState.MEDIA_MISSING)
        return

    job.media_path = artifact.path
    job.advance(DownloadState.MEDIA_FOUND)


async def _fetch_comments(job: DownloadJob, sink: LogSink) -> None:
    job.advance(DownloadState.FETCHING_COMMENTS)
    sink.line("")
    sink.line("Fetching comments...")

    try:
        json_path = await run_chat_downloader(job.url, job.output_dir, sink)

        job.advance(DownloadState.NORMALIZING_COMMENTS)
        sink.line("Converting comments to CSV...")
        csv_path = job.output_dir / COMMENTS_CSV_NAME
        job.comment_count = convert_comments_to_csv(json_path, csv_path)
    except (ToolError, OSError) as e:
        logger.warning(f"Comment step failed for {job.url}: {e}")
        job.comment_error = str(e)
        job.advance(DownloadState.COMMENT_ERROR)
        sink.line(f"Comment download error: {e}")
        return

    job.comments_csv = csv_path
    job.advance(DownloadState.DONE)
    sink.line(f"Timestamped comments: {job.comment_count}")
    sink.line(f"Comments saved: {csv_path}")


def _report(job: DownloadJob, sink: LogSink) -> dict[str, Any]:
    if not job.finished:
        raise ValueError(f"Download job {job.job_id} is still {job.state.value}")

    result: dict[str, Any] = {
        "job_id": job.job_id,
        "status": job.state.value,
        "video_dir": str(job.output_dir),
        "exit_code": job.exit_code,
    }

    if job.state == DownloadState.FAILED:
        sink.line(f"Download error: {job.error}")
        return {"success": False, **result, "error": job.error}

    if job.state == DownloadState.MEDIA_MISSING:
        sink.line("")
        sink.line("Error: downloaded file not found")
        sink.line(f"Download folder: {job.output_dir}")
        sink.line("Files in folder:")
        for name in job.files:
            sink.line(f"  - {name}")
        return {"success": False, **result, "error": job.error, "files": job.files}

    sink.line("")
    sink.line(f"Download complete: {job.media_path.name}")
    return {
        "success": True,
        **result,
        "output_path": str(job.media_path),
        "comments_csv": str(job.comments_csv) if job.comments_csv else None,
        "comment_count": job.comment_count,
        "comment_error": job.comment_error,
    }


async def download_video(
    url: str,
    sink: LogSink,
    fetch_comments: bool = True,
    base_dir: Path | None = None,
) -> dict[str, Any]:
    """
    Download a video (and optionally its live chat) into a per-job folder.

    A missing output file is reported as its own outcome together with the
    folder listing. A failed comment step leaves the media result intact.

    Args:
        url: Video URL to download
        sink: Operator log receiving tool output and progress messages
        fetch_comments: Also fetch chat comments and write comments.csv
        base_dir: Download root (defaults to the configured download directory)

    Returns:
        dict with success, job_id, status, output_path and comment details
    """
    sink.line("")
    sink.line("Starting video download...")
    sink.line(f"URL: {url}")

    job = create_job(url, base_dir)
    logger.info(f"Download job {job.job_id} -> {job.output_dir}")

    await _fetch_media(job, sink)

    if job.state == DownloadState.MEDIA_FOUND:
        if fetch_comments:
            await _fetch_comments(job, sink)
        else:
            job.advance(DownloadState.DONE)

    return _report(job, sink)
