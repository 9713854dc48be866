"""Locate external executables among package-manager install directories."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

from ..config import FALLBACK_TOOL_DIR, get_tool_search_dirs

logger = logging.getLogger(__name__)


class ResolvedTool(BaseModel):
    """Result of an executable lookup. ``path`` is unverified when ``found`` is False."""

    name: str
    path: str
    searched: tuple[str, ...] = ()
    found: bool = False


def resolve_executable(name: str, search_dirs: list[Path] | None = None) -> ResolvedTool:
    """
    Find ``name`` in the ordered candidate directories.

    Never fails: when no directory holds the file, the hard-coded fallback
    location is returned without checking it, and the launch reports the
    error later.

    Args:
        name: Executable file name (e.g. "yt-dlp")
        search_dirs: Candidate directories (defaults to the configured list)

    Returns:
        ResolvedTool with the chosen path and the directories tried
    """
    dirs = search_dirs if search_dirs is not None else get_tool_search_dirs()
    searched = tuple(str(d) for d in dirs)

    for directory in dirs:
        candidate = directory / name
        if candidate.is_file():
            logger.debug(f"Resolved {name} -> {candidate}")
            return ResolvedTool(name=name, path=str(candidate), searched=searched, found=True)

    fallback = str(Path(FALLBACK_TOOL_DIR) / name)
    logger.warning(f"{name} not found in {', '.join(searched)}; falling back to {fallback}")
    return ResolvedTool(name=name, path=fallback, searched=searched, found=False)
