"""MCP server for moviecut-tool using FastMCP."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from .config import ensure_dirs
from .core import get_workflow

# Disable DNS rebinding protection to allow any Host header (for reverse proxy)
mcp = FastMCP(
    "moviecut-tool",
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)

# =============================================================================
# TOOL USAGE GUIDANCE FOR AI ASSISTANTS:
#
# Every processing tool starts a background task and returns immediately.
# Follow progress with moviecut_get_log (pass the returned offset to read
# only new output) and moviecut_get_status (busy flags, last results).
#
# Typical flow:
#   1. moviecut_download_video  → downloads and selects the video
#   2. moviecut_transcribe      → <name>.srt beside the video
#   3. moviecut_cut_silence     → <name>.cut.mp4 beside the video
# =============================================================================


@mcp.tool(name="moviecut_download_video")
async def tool_download_video(url: str, comments: bool = True) -> dict:
    """
    Download a video (720p max) into the MovieCutTool download folder.

    The downloaded file becomes the selected video. With comments enabled the
    live chat is saved as comments_raw.json and normalized to comments.csv.

    Args:
        url: Video URL to download
        comments: Also fetch live chat comments (default True)
    """
    ensure_dirs()
    return get_workflow().start_download(url, fetch_comments=comments)


@mcp.tool(name="moviecut_download_comments")
async def tool_download_comments(url: str) -> dict:
    """
    Fetch only the live chat comments of a video as comments.csv.

    Args:
        url: Video URL
    """
    ensure_dirs()
    return get_workflow().start_comments(url)


@mcp.tool(name="moviecut_select_video")
async def tool_select_video(path: str) -> dict:
    """
    Select a local video for transcription and silence cut.

    Args:
        path: Path to a local video file
    """
    return get_workflow().select_video(path)


@mcp.tool(name="moviecut_transcribe")
async def tool_transcribe(path: str | None = None) -> dict:
    """
    Transcribe Japanese speech with whisper.cpp into an SRT file.

    Args:
        path: Video file (optional, defaults to the selected video)
    """
    return get_workflow().start_transcription(path)


@mcp.tool(name="moviecut_cut_silence")
async def tool_cut_silence(
    path: str | None = None,
    noise_db: float | None = None,
    min_duration: float | None = None,
) -> dict:
    """
    Remove silent parts from a video, writing <name>.cut.mp4.

    Args:
        path: Video file (optional, defaults to the selected video)
        noise_db: Noise level in dB, -60 to -20 (default from config, -30)
        min_duration: Minimum silence length in seconds, 0.1 to 2.0 (default 0.3)
    """
    return get_workflow().start_silence_cut(path, noise_db=noise_db, min_duration=min_duration)


@mcp.tool(name="moviecut_get_log")
async def tool_get_log(offset: int = 0) -> dict:
    """
    Read the processing log.

    Args:
        offset: Return only text appended after this offset (from a previous call)
    """
    text, next_offset = get_workflow().sink.read(offset)
    return {"success": True, "text": text, "offset": next_offset}


@mcp.tool(name="moviecut_get_status")
async def tool_get_status() -> dict:
    """Get busy flags, the selected video and the last result of each stage."""
    return {"success": True, **get_workflow().status()}
