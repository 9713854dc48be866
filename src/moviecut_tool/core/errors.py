"""Failure classes shared by the orchestration stages."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class ToolError(Exception):
    """Base error for external tool orchestration."""


class LaunchError(ToolError):
    """Raised when an executable cannot be started."""

    def __init__(self, path: str, reason: str, searched: Sequence[str] = ()):
        self.path = path
        self.reason = reason
        self.searched = tuple(searched)
        message = f"Failed to launch {path}: {reason}"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message)


class ToolExitError(ToolError):
    """Raised when a tool exits with a nonzero status."""

    def __init__(self, tool: str, exit_code: int):
        self.tool = tool
        self.exit_code = exit_code
        super().__init__(f"{tool} exited with an error (code: {exit_code})")


class MissingPrerequisiteError(ToolError):
    """Raised when a file a tool needs is absent before launch."""

    def __init__(self, kind: str, path: str | Path):
        self.kind = kind
        self.path = str(path)
        super().__init__(f"{kind} not found: {self.path}")


class MissingArtifactError(ToolError):
    """Raised when a tool exited cleanly but its output file is absent."""

    def __init__(self, path: str | Path, files: Sequence[str] = ()):
        self.path = str(path)
        self.files = list(files)
        super().__init__(f"Expected output was not produced: {self.path}")


class CommentParseError(ToolError):
    """Raised when a comment export is malformed or not a JSON array."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Could not read comments from {self.path}: {reason}")
