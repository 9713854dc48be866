"""Operator-triggered stages run as independent asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import Any

from ..config import get_download_dir
from .comments import download_comments
from .download import download_video
from .log_sink import LogSink
from .silence_cut import cut_silence
from .transcribe import transcribe_video

logger = logging.getLogger(__name__)


class Workflow:
    """
    Owns the shared log sink and the stage busy flags.

    ``downloading`` guards the download action; ``processing`` guards the
    comments-only, transcription and silence-cut actions. A busy action is
    refused, never queued. Every task returns the flag to idle whatever the
    outcome.
    """

    def __init__(self, sink: LogSink | None = None):
        self.sink = sink or LogSink()
        self.selected_video: Path | None = None
        self.downloading = False
        self.processing = False
        self.last_results: dict[str, dict[str, Any]] = {}
        self._tasks: set[asyncio.Task] = set()

    def status(self) -> dict[str, Any]:
        return {
            "downloading": self.downloading,
            "processing": self.processing,
            "selected_video": str(self.selected_video) if self.selected_video else None,
            "running": len(self._tasks),
            "last_results": self.last_results,
        }

    def select_video(self, path: str | Path) -> dict[str, Any]:
        """Choose the video the transcription and silence-cut actions work on."""
        path = Path(path).expanduser()
        if not path.is_file():
            return {
                "success": False,
                "error": f"Video file not found: {path}",
            }
        self.selected_video = path
        self.sink.line(f"Selected file: {path}")
        return {
            "success": True,
            "selected_video": str(path),
        }

    def _start(self, stage: str, flag: str, work: Awaitable[dict[str, Any]]) -> dict[str, Any]:
        setattr(self, flag, True)
        task = asyncio.get_running_loop().create_task(self._run(stage, flag, work))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return {
            "success": True,
            "stage": stage,
            "status": "started",
        }

    async def _run(self, stage: str, flag: str, work: Awaitable[dict[str, Any]]) -> dict[str, Any]:
        try:
            result = await work
        except Exception as e:
            logger.error(f"{stage} failed with exception: {e}", exc_info=True)
            self.sink.line(f"{stage} error: {e}")
            result = {
                "success": False,
                "error": str(e),
            }
        finally:
            setattr(self, flag, False)

        self.last_results[stage] = result
        return result

    def _busy(self, flag: str) -> dict[str, Any] | None:
        if getattr(self, flag):
            return {
                "success": False,
                "error": f"Another task is already running ({flag})",
            }
        return None

    def _resolve_input(self, path: str | Path | None) -> Path | None:
        if path is not None:
            return Path(path).expanduser()
        return self.selected_video

    async def _download(self, url: str, fetch_comments: bool) -> dict[str, Any]:
        result = await download_video(url, self.sink, fetch_comments=fetch_comments)
        if result.get("success"):
            self.selected_video = Path(result["output_path"])
        return result

    def start_download(self, url: str, fetch_comments: bool = True) -> dict[str, Any]:
        """Start downloading ``url``; the downloaded file becomes the selected video."""
        if not url.strip():
            return {"success": False, "error": "URL is required"}
        busy = self._busy("downloading")
        if busy:
            return busy
        return self._start("download", "downloading", self._download(url.strip(), fetch_comments))

    def start_comments(self, url: str) -> dict[str, Any]:
        """Start fetching only the comments of ``url`` into the download root."""
        if not url.strip():
            return {"success": False, "error": "URL is required"}
        busy = self._busy("processing")
        if busy:
            return busy

        async def work() -> dict[str, Any]:
            self.sink.line("")
            self.sink.line("Starting comment download...")
            self.sink.line(f"URL: {url}")
            result = await download_comments(url.strip(), get_download_dir(), self.sink)
            if result.get("success"):
                self.sink.line("Comment download complete")
            return result

        return self._start("comments", "processing", work())

    def start_transcription(self, path: str | Path | None = None) -> dict[str, Any]:
        """Start transcribing ``path`` (default: the selected video)."""
        input_path = self._resolve_input(path)
        if input_path is None:
            return {"success": False, "error": "No video selected"}
        busy = self._busy("processing")
        if busy:
            return busy
        return self._start("transcribe", "processing", transcribe_video(input_path, self.sink))

    def start_silence_cut(
        self,
        path: str | Path | None = None,
        noise_db: float | None = None,
        min_duration: float | None = None,
    ) -> dict[str, Any]:
        """Start trimming silence from ``path`` (default: the selected video)."""
        input_path = self._resolve_input(path)
        if input_path is None:
            return {"success": False, "error": "No video selected"}
        busy = self._busy("processing")
        if busy:
            return busy
        return self._start(
            "silence_cut",
            "processing",
            cut_silence(input_path, self.sink, noise_db=noise_db, min_duration=min_duration),
        )

    async def wait(self) -> None:
        """Wait for every running stage to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_workflow: Workflow | None = None


def get_workflow() -> Workflow:
    """Get the process-wide workflow instance."""
    global _workflow
    if _workflow is None:
        _workflow = Workflow()
    return _workflow
