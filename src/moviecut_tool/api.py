"""REST API routes for moviecut-tool."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from .config import MIN_DURATION_RANGE, NOISE_DB_RANGE, ensure_dirs
from .core import get_workflow

router = APIRouter()


@router.get("/health")
async def health():
    """Health check and service info."""
    return {
        "name": "moviecut-tool",
        "version": "0.1.0",
        "status": "healthy",
        "endpoints": {
            "api": "/api",
            "mcp": "/mcp",
            "docs": "/docs",
        },
    }


@router.get("/log")
async def api_log(
    offset: Annotated[int, Query(description="Return only text appended after this offset", ge=0)] = 0,
):
    """Read the processing log (incrementally when an offset is given)."""
    text, next_offset = get_workflow().sink.read(offset)
    return {
        "success": True,
        "text": text,
        "offset": next_offset,
    }


@router.delete("/log")
async def api_clear_log():
    """Clear the processing log."""
    get_workflow().sink.clear()
    return {"success": True}


@router.get("/status")
async def api_status():
    """Busy flags, selected video and the last result of each stage."""
    return {"success": True, **get_workflow().status()}


@router.post("/select")
async def api_select(
    path: Annotated[str, Query(description="Local video file to work on")],
):
    """Select the local video used by transcription and silence cut."""
    return get_workflow().select_video(path)


@router.post("/download")
async def api_download(
    url: Annotated[str, Query(description="Video URL to download")],
    comments: Annotated[bool, Query(description="Also fetch live chat comments")] = True,
):
    """Start downloading a video (runs in the background; poll /log and /status)."""
    ensure_dirs()
    return get_workflow().start_download(url, fetch_comments=comments)


@router.post("/comments")
async def api_comments(
    url: Annotated[str, Query(description="Video URL whose live chat to fetch")],
):
    """Start fetching only the comments of a video."""
    ensure_dirs()
    return get_workflow().start_comments(url)


@router.post("/transcribe")
async def api_transcribe(
    path: Annotated[str | None, Query(description="Video file (default: selected video)")] = None,
):
    """Start Japanese speech recognition producing an SRT beside the video."""
    return get_workflow().start_transcription(path)


@router.post("/silence-cut")
async def api_silence_cut(
    path: Annotated[str | None, Query(description="Video file (default: selected video)")] = None,
    noise_db: Annotated[
        float | None,
        Query(description="Noise level in dB", ge=NOISE_DB_RANGE[0], le=NOISE_DB_RANGE[1]),
    ] = None,
    min_duration: Annotated[
        float | None,
        Query(description="Minimum silence in seconds", ge=MIN_DURATION_RANGE[0], le=MIN_DURATION_RANGE[1]),
    ] = None,
):
    """Start removing silent parts, writing <name>.cut.mp4."""
    return get_workflow().start_silence_cut(path, noise_db=noise_db, min_duration=min_duration)
