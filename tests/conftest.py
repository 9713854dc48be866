"""Pytest configuration with fake external tools in a temporary project layout."""

from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from moviecut_tool.core.log_sink import LogSink


def pytest_configure(config):
    """Configure pytest-asyncio and custom markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


def write_executable(path: Path, body: str) -> Path:
    """Write a Python script with a shebang for the running interpreter and make it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def sink():
    return LogSink()


@pytest.fixture
def make_script(tmp_path):
    """Write an executable Python script under tmp_path/scripts."""

    def make(name: str, body: str) -> Path:
        return write_executable(tmp_path / "scripts" / name, body)

    return make


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Temporary MovieCutTool layout with all paths redirected through env vars."""
    project_dir = tmp_path / "MovieCutTool"
    download_dir = tmp_path / "downloads"
    bin_dir = tmp_path / "bin"
    config_dir = tmp_path / "config"

    for d in [project_dir, download_dir, bin_dir, config_dir]:
        d.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("MOVIECUT_PROJECT_DIR", str(project_dir))
    monkeypatch.setenv("MOVIECUT_DOWNLOAD_DIR", str(download_dir))
    monkeypatch.setenv("MOVIECUT_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("MOVIECUT_PYTHON", sys.executable)
    monkeypatch.setenv("MOVIECUT_TOOL_PATH", str(bin_dir))

    return {
        "project_dir": project_dir,
        "download_dir": download_dir,
        "bin_dir": bin_dir,
        "config_dir": config_dir,
    }


@pytest.fixture
def fake_ytdlp(project):
    """Install a fake yt-dlp into the tool path.

    Call with ``create_file=False`` to simulate a run that writes no video.
    """

    def install(create_file: bool = True, exit_code: int = 0) -> Path:
        return write_executable(
            project["bin_dir"] / "yt-dlp",
            f"""
            import os
            import sys

            args = sys.argv[1:]
            out_dir = os.path.dirname(args[args.index("-o") + 1])
            print("[download] Destination: Test Video.mp4", flush=True)
            sys.stderr.write("WARNING: fake downloader\\n")
            sys.stderr.flush()
            with open(os.path.join(out_dir, "Test Video.info.txt"), "w") as f:
                f.write(" ".join(args))
            if {create_file!r}:
                with open(os.path.join(out_dir, "Test Video.mp4"), "wb") as f:
                    f.write(b"video")
            print("[download] 100% of 5.00B", flush=True)
            sys.exit({exit_code!r})
            """,
        )

    return install


@pytest.fixture
def fake_python(project, monkeypatch):
    """Install a fake interpreter that answers ``-m chat_downloader`` and ``-m vedit.jetcut``.

    Returns ``configure(module, exit_code=0, payload=None)``; modules that were
    not configured fail like a missing module would. ``payload`` (str or
    JSON-serializable) is what chat_downloader writes to its ``-o`` file.
    """
    behaviours_file = project["bin_dir"] / "fake_python_behaviours.json"
    behaviours_file.write_text("{}")
    interpreter = write_executable(
        project["bin_dir"] / "python3-fake",
        f"""
        import json
        import os
        import sys

        with open({str(behaviours_file)!r}, encoding="utf-8") as f:
            behaviours = json.load(f)

        args = sys.argv[1:]
        module, rest = args[1], args[2:]
        behaviour = behaviours.get(module)
        if args[0] != "-m" or behaviour is None:
            sys.stderr.write(f"No module named {{module}}\\n")
            sys.exit(1)

        print(f"[{{module}}] PYTHONPATH={{os.environ.get('PYTHONPATH')}} cwd={{os.getcwd()}}", flush=True)
        if module == "chat_downloader":
            out = rest[rest.index("-o") + 1]
            print("Retrieving chat for", rest[0], flush=True)
            if behaviour["exit_code"] == 0:
                with open(out, "w", encoding="utf-8") as f:
                    f.write(behaviour["payload"])
        elif module == "vedit.jetcut":
            print("jetcut args:", " ".join(rest), flush=True)
            sys.stderr.write("removed 3 silent segments\\n")
        sys.exit(behaviour["exit_code"])
        """,
    )
    monkeypatch.setenv("MOVIECUT_PYTHON", str(interpreter))

    def configure(module: str, exit_code: int = 0, payload: str | list | None = None) -> None:
        if payload is None:
            payload = []
        if not isinstance(payload, str):
            payload = json.dumps(payload, ensure_ascii=False)
        configured = json.loads(behaviours_file.read_text(encoding="utf-8"))
        configured[module] = {"exit_code": exit_code, "payload": payload}
        behaviours_file.write_text(json.dumps(configured, ensure_ascii=False), encoding="utf-8")

    return configure


@pytest.fixture
def fake_whisper(project):
    """Install a fake whisper-cli binary and model file."""

    def install(write_srt: bool = True, exit_code: int = 0, model: bool = True) -> Path:
        whisper_dir = project["project_dir"] / "third_party" / "whisper.cpp"
        if model:
            (whisper_dir / "models").mkdir(parents=True, exist_ok=True)
            (whisper_dir / "models" / "ggml-base.bin").write_bytes(b"model")
        return write_executable(
            whisper_dir / "build" / "bin" / "whisper-cli",
            f"""
            import sys

            args = sys.argv[1:]
            base = args[args.index("-of") + 1]
            print("whisper_init_from_file: loading model", flush=True)
            sys.stderr.write("progress = 50%\\n")
            sys.stderr.flush()
            if {write_srt!r}:
                with open(base + ".srt", "w", encoding="utf-8") as f:
                    f.write("1\\n00:00:00,000 --> 00:00:01,000\\nこんにちは\\n")
            sys.exit({exit_code!r})
            """,
        )

    return install


@pytest.fixture
def video_file(tmp_path):
    """A local video file to transcribe or cut."""
    path = tmp_path / "media" / "clip.mp4"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"video")
    return path
