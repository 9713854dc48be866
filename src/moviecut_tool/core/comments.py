"""Live-chat comment fetching and normalization to CSV."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config.tools import COMMENTS_CSV_NAME, COMMENTS_JSON_NAME, build_chat_downloader_invocation
from ..models import CommentRecord
from .errors import CommentParseError, ToolError
from .log_sink import LogSink
from .runner import require_success, run_streaming

logger = logging.getLogger(__name__)

CSV_HEADER = "timestamp,author,message"

# Characters that force a CSV field to be quoted
_CSV_SPECIAL = (",", '"', "\n", "\r")


def _resolve_timestamp(entry: dict[str, Any]) -> float | None:
    """
    Resolve the comment offset in seconds.

    Priority:
    1. ``time_in_seconds``: number of seconds
    2. ``timestamp_usec``: microseconds as a decimal string
    """
    seconds = entry.get("time_in_seconds")
    try:
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            value = float(seconds)
        else:
            usec = entry.get("timestamp_usec")
            if not isinstance(usec, str):
                return None
            value = float(usec) / 1_000_000
    except (ValueError, OverflowError):
        # Unparsable text, or an integer beyond the float range
        return None

    # Chat sent before the stream started has a negative offset
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _resolve_author(entry: dict[str, Any]) -> str | None:
    author = entry.get("author")
    if not isinstance(author, dict):
        return None
    name = author.get("name")
    if isinstance(name, str) and name:
        return name
    return None


def _resolve_message(entry: dict[str, Any]) -> str:
    """
    Resolve the message text.

    Priority:
    1. ``message``: plain string
    2. ``message_fragments``: list of fragments whose ``text`` parts are joined
    """
    message = entry.get("message")
    if isinstance(message, str):
        return message

    fragments = entry.get("message_fragments")
    if isinstance(fragments, list):
        return "".join(
            fragment["text"]
            for fragment in fragments
            if isinstance(fragment, dict) and isinstance(fragment.get("text"), str)
        )
    return ""


def normalize_comment(entry: dict[str, Any]) -> CommentRecord | None:
    """Normalize one raw entry, or return None if it must be dropped."""
    timestamp = _resolve_timestamp(entry)
    if timestamp is None:
        return None

    author = _resolve_author(entry)
    if author is None:
        return None

    message = _resolve_message(entry)
    if not message:
        return None

    try:
        return CommentRecord(timestamp=timestamp, author=author, message=message)
    except ValidationError as e:
        # e.g. a lone surrogate left by a truncated emoji
        logger.debug(f"Dropping comment by {author!r}: {e}")
        return None


def normalize_comments(entries: list[Any]) -> list[CommentRecord]:
    """Normalize a raw comment export, keeping input order."""
    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        record = normalize_comment(entry)
        if record is not None:
            records.append(record)
    return records


def escape_csv_field(text: str) -> str:
    """Quote ``text`` only when it contains a comma, double quote, LF or CR."""
    if any(c in text for c in _CSV_SPECIAL):
        return '"' + text.replace('"', '""') + '"'
    return text


def comments_to_csv(records: list[CommentRecord]) -> str:
    """Serialize records as ``timestamp,author,message`` CSV text."""
    lines = [CSV_HEADER]
    for record in records:
        lines.append(
            f"{record.clock},"
            f"{escape_csv_field(record.author)},"
            f"{escape_csv_field(record.message)}"
        )
    return "\n".join(lines) + "\n"


def load_comments(json_path: Path) -> list[CommentRecord]:
    """
    Read a chat-downloader JSON export.

    Raises:
        CommentParseError: If the file is unreadable, not JSON, or not an array
    """
    try:
        with open(json_path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CommentParseError(json_path, str(e)) from e
    except ValueError as e:
        raise CommentParseError(json_path, f"invalid JSON ({e})") from e

    if not isinstance(data, list):
        raise CommentParseError(json_path, f"expected a JSON array, got {type(data).__name__}")

    return normalize_comments(data)


def convert_comments_to_csv(json_path: Path, csv_path: Path) -> int:
    """
    Convert a raw comment export into the normalized CSV.

    Returns:
        Number of comment rows written

    Raises:
        CommentParseError: If the export is malformed or its text cannot be written as UTF-8
    """
    records = load_comments(json_path)
    try:
        data = comments_to_csv(records).encode("utf-8")
    except UnicodeError as e:
        raise CommentParseError(json_path, f"cannot encode {csv_path.name} ({e})") from e
    csv_path.write_bytes(data)
    return len(records)


async def run_chat_downloader(url: str, output_dir: Path, sink: LogSink) -> Path:
    """
    Run chat-downloader into ``output_dir/comments_raw.json``.

    Raises:
        LaunchError: If the interpreter could not be started
        ToolExitError: If chat-downloader exited with an error
    """
    json_path = output_dir / COMMENTS_JSON_NAME
    invocation = build_chat_downloader_invocation(url, json_path)
    outcome = await run_streaming(invocation, sink)
    require_success(outcome, "chat-downloader")
    return json_path


async def download_comments(url: str, output_dir: Path, sink: LogSink) -> dict[str, Any]:
    """
    Fetch the live chat of ``url`` and write ``comments.csv`` next to the raw export.

    Args:
        url: Video URL
        output_dir: Directory receiving comments_raw.json and comments.csv
        sink: Operator log

    Returns:
        dict with success, csv_path, count or error
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        json_path = await run_chat_downloader(url, output_dir, sink)

        sink.line("Converting comments to CSV...")
        csv_path = output_dir / COMMENTS_CSV_NAME
        count = convert_comments_to_csv(json_path, csv_path)
        sink.line(f"Timestamped comments: {count}")
        sink.line(f"Comments saved: {csv_path}")

        return {
            "success": True,
            "csv_path": str(csv_path),
            "count": count,
        }
    except (ToolError, OSError) as e:
        logger.warning(f"Comment download failed for {url}: {e}")
        sink.line(f"Comment download error: {e}")
        return {
            "success": False,
            "error": str(e),
        }
