"""Basic settings, directory management and fixed tool locations."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_downloads_dir


def get_config_dir() -> Path:
    """Get the configuration directory."""
    return Path(os.environ.get("MOVIECUT_CONFIG_DIR", user_config_dir("moviecut-tool")))


def get_download_dir() -> Path:
    """Get the root directory that holds one folder per download job."""
    default = Path(user_downloads_dir()) / "MovieCutTool_Downloads"
    return Path(os.environ.get("MOVIECUT_DOWNLOAD_DIR", str(default)))


def get_project_dir() -> Path:
    """Get the MovieCutTool checkout holding the helper scripts and third_party tools."""
    default = Path.home() / "Documents" / "dsgarageScript" / "MovieCutTool"
    return Path(os.environ.get("MOVIECUT_PROJECT_DIR", str(default)))


def get_python_path() -> Path:
    """Get the interpreter used to run the Python-module tools."""
    default = Path.home() / ".pyenv" / "shims" / "python3"
    return Path(os.environ.get("MOVIECUT_PYTHON", str(default)))


def get_script_library_dir() -> Path:
    """PYTHONPATH for the silence-cut script (``vedit.jetcut``)."""
    return get_project_dir() / "src"


def get_chat_downloader_dir() -> Path:
    """PYTHONPATH for the bundled chat-downloader checkout."""
    return get_project_dir() / "third_party" / "chat-downloader"


def get_whisper_binary() -> Path:
    """Path of the whisper.cpp command line binary."""
    return get_project_dir() / "third_party" / "whisper.cpp" / "build" / "bin" / "whisper-cli"


def get_whisper_model() -> Path:
    """Path of the whisper.cpp model file."""
    return get_project_dir() / "third_party" / "whisper.cpp" / "models" / "ggml-base.bin"


# Searched in order by the executable resolver
DEFAULT_TOOL_DIRS = [
    "~/.pyenv/shims",
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/usr/bin",
]

FALLBACK_TOOL_DIR = "/opt/homebrew/bin"


def get_tool_search_dirs() -> list[Path]:
    """
    Get the ordered candidate directories for external executables.

    Entries of ``MOVIECUT_TOOL_PATH`` (os.pathsep separated) are searched
    before the built-in list.
    """
    extra = os.environ.get("MOVIECUT_TOOL_PATH", "")
    dirs = [d for d in extra.split(os.pathsep) if d]
    dirs.extend(DEFAULT_TOOL_DIRS)
    return [Path(d).expanduser() for d in dirs]


def get_config_file() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from file."""
    config: dict[str, Any] = {}
    config_file = get_config_file()
    if config_file.exists():
        with open(config_file) as f:
            config = json.load(f)
    return config


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        json.dump(config, f, indent=2)


def ensure_dirs() -> None:
    """Ensure all required directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_download_dir().mkdir(parents=True, exist_ok=True)


# Silence-cut defaults (slider start values of the operator UI)
DEFAULT_SILENCE_CONFIG = {
    "noise_db": -30.0,
    "min_duration": 0.3,
}

# Bounds offered to the operator
NOISE_DB_RANGE = (-60.0, -20.0)
MIN_DURATION_RANGE = (0.1, 2.0)


def get_silence_config() -> dict[str, Any]:
    """Get silence-cut configuration with defaults."""
    config = load_config()
    silence = config.get("silence", {})
    return {**DEFAULT_SILENCE_CONFIG, **silence}


DEFAULT_SERVER_CONFIG = {
    "host": "127.0.0.1",
    "port": 8000,
    "log_level": "info",
}


def get_server_config() -> dict[str, Any]:
    """Get HTTP server configuration with defaults."""
    config = load_config()
    server = config.get("server", {})
    return {**DEFAULT_SERVER_CONFIG, **server}
