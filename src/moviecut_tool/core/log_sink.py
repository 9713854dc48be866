"""Append-only operator log shared by every running stage."""

from __future__ import annotations

import threading


class LogSink:
    """
    Thread-safe append-only text buffer.

    Stream readers on the event loop and worker threads running blocking
    tools append concurrently; every mutation takes the lock.

    Read offsets are absolute: they keep counting across ``clear()``, so a
    poller holding an offset from before a clear resumes at the start of the
    new log instead of skipping into it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._chunks: list[str] = []
        self._size = 0
        # Characters discarded by earlier clears
        self._base = 0

    def append(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self._chunks.append(text)
            self._size += len(text)

    def line(self, text: str = "") -> None:
        """Append ``text`` followed by a newline."""
        self.append(f"{text}\n")

    def _snapshot(self) -> str:
        joined = "".join(self._chunks)
        # Compact so repeated snapshots stay cheap
        self._chunks = [joined] if joined else []
        return joined

    def text(self) -> str:
        with self._lock:
            return self._snapshot()

    def read(self, offset: int = 0) -> tuple[str, int]:
        """
        Return the text appended since ``offset`` and the new offset.

        Lets a poller fetch increments without re-reading the whole log.
        An offset from before the last clear returns the whole current log.
        """
        with self._lock:
            content = self._snapshot()
            base = self._base
        start = max(0, min(offset - base, len(content)))
        return content[start:], base + len(content)

    def clear(self) -> None:
        with self._lock:
            self._base += self._size
            self._chunks = []
            self._size = 0

    def __len__(self) -> int:
        with self._lock:
            return self._size
