"""Configuration module for moviecut-tool."""

from .settings import (
    DEFAULT_SILENCE_CONFIG,
    FALLBACK_TOOL_DIR,
    MIN_DURATION_RANGE,
    NOISE_DB_RANGE,
    ensure_dirs,
    get_chat_downloader_dir,
    get_config_dir,
    get_config_file,
    get_download_dir,
    get_project_dir,
    get_python_path,
    get_script_library_dir,
    get_server_config,
    get_silence_config,
    get_tool_search_dirs,
    get_whisper_binary,
    get_whisper_model,
    load_config,
    save_config,
)

__all__ = [
    "DEFAULT_SILENCE_CONFIG",
    "FALLBACK_TOOL_DIR",
    "MIN_DURATION_RANGE",
    "NOISE_DB_RANGE",
    "ensure_dirs",
    "get_chat_downloader_dir",
    "get_config_dir",
    "get_config_file",
    "get_download_dir",
    "get_project_dir",
    "get_python_path",
    "get_script_library_dir",
    "get_server_config",
    "get_silence_config",
    "get_tool_search_dirs",
    "get_whisper_binary",
    "get_whisper_model",
    "load_config",
    "save_config",
]
