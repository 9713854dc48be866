"""Tests for the video download pipeline with fake tools."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from moviecut_tool.core.download import NO_FILE_FOUND, _report, create_job, download_video
from moviecut_tool.models import DownloadJob, DownloadState

# "Me at the zoo" - first YouTube video
TEST_VIDEO_URL = "https://www.youtube.com/watch?v=jNQXAC9IVRw"
TEST_VIDEO_ID = "jNQXAC9IVRw"

CHAT_PAYLOAD = [
    {"time_in_seconds": 3661.9, "author": {"name": "O'Brien, Jr."}, "message": 'He said "hi"'},
    {"time_in_seconds": -5, "author": {"name": "early"}, "message": "before start"},
    {"timestamp_usec": "12000000", "author": {"name": "viewer"}, "message_fragments": [{"text": "nice"}]},
]


@pytest.mark.asyncio
class TestDownloadVideo:
    """Test the full download flow."""

    async def test_success_with_comments(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp()
        fake_python("chat_downloader", payload=CHAT_PAYLOAD)

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is True
        assert result["status"] == "done"
        assert result["job_id"] == TEST_VIDEO_ID
        assert result["exit_code"] == 0
        job_dir = project["download_dir"] / TEST_VIDEO_ID
        assert result["video_dir"] == str(job_dir)
        assert result["output_path"] == str(job_dir / "Test Video.mp4")
        assert result["comment_count"] == 2
        assert result["comments_csv"] == str(job_dir / "comments.csv")

        csv_text = (job_dir / "comments.csv").read_text(encoding="utf-8")
        assert csv_text == (
            "timestamp,author,message\n"
            '01:01:01,"O\'Brien, Jr.","He said ""hi"""\n'
            "00:00:12,viewer,nice\n"
        )
        assert (job_dir / "comments_raw.json").exists()

        log = sink.text()
        assert "[download] 100%" in log
        assert "WARNING: fake downloader" in log
        assert "Timestamped comments: 2" in log
        assert f"Comments saved: {job_dir / 'comments.csv'}" in log

    async def test_ytdlp_arguments(self, project, fake_ytdlp, sink):
        fake_ytdlp()

        await download_video(TEST_VIDEO_URL, sink, fetch_comments=False)

        job_dir = project["download_dir"] / TEST_VIDEO_ID
        args = (job_dir / "Test Video.info.txt").read_text()
        assert args.startswith(TEST_VIDEO_URL)
        assert "-f best[height<=720]/best" in args
        assert f"-o {job_dir}/%(title)s.%(ext)s" in args
        assert "--no-playlist" in args
        assert "--merge-output-format mp4" in args
        assert "--live-from-start" in args
        assert f"Using yt-dlp: {project['bin_dir'] / 'yt-dlp'}" in sink.text()

    async def test_media_missing(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp(create_file=False)
        fake_python("chat_downloader", payload=CHAT_PAYLOAD)

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is False
        assert result["status"] == "media-missing"
        assert result["error"] == NO_FILE_FOUND
        assert result["exit_code"] == 0
        assert "Test Video.info.txt" in result["files"]

        log = sink.text()
        assert "Error: downloaded file not found" in log
        assert "  - Test Video.info.txt" in log
        # Comments are not fetched without media
        assert "Retrieving chat" not in log

    async def test_nonzero_exit_still_finds_file(self, project, fake_ytdlp, sink):
        fake_ytdlp(exit_code=1)

        result = await download_video(TEST_VIDEO_URL, sink, fetch_comments=False)

        assert result["success"] is True
        assert result["exit_code"] == 1
        assert result["output_path"].endswith("Test Video.mp4")
        assert "yt-dlp exited with code 1" in sink.text()

    async def test_comment_failure_keeps_media_result(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp()
        fake_python("chat_downloader", exit_code=1)

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is True
        assert result["status"] == "comment-error"
        assert result["output_path"].endswith("Test Video.mp4")
        assert result["comments_csv"] is None
        assert "chat-downloader exited with an error (code: 1)" in result["comment_error"]
        assert "Comment download error:" in sink.text()

    async def test_malformed_comment_export(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp()
        fake_python("chat_downloader", payload="{broken")

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is True
        assert result["status"] == "comment-error"
        assert "Could not read comments" in result["comment_error"]
        assert not (project["download_dir"] / TEST_VIDEO_ID / "comments.csv").exists()

    async def test_unrepresentable_comments_keep_media_result(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp()
        payload = (
            '[{"time_in_seconds": 1, "author": {"name": "a"}, "message": "\\ud83d broken emoji"},'
            ' {"time_in_seconds": 1' + "0" * 400 + ', "author": {"name": "b"}, "message": "far future"},'
            ' {"time_in_seconds": 2, "author": {"name": "c"}, "message": "ok"}]'
        )
        fake_python("chat_downloader", payload=payload)

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is True
        assert result["status"] == "done"
        assert result["output_path"].endswith("Test Video.mp4")
        assert result["comment_count"] == 1
        csv_text = (project["download_dir"] / TEST_VIDEO_ID / "comments.csv").read_text(encoding="utf-8")
        assert csv_text == "timestamp,author,message\n00:00:02,c,ok\n"

    async def test_media_missing_after_nonzero_exit(self, project, fake_ytdlp, sink):
        fake_ytdlp(create_file=False, exit_code=1)

        result = await download_video(TEST_VIDEO_URL, sink)

        assert result["status"] == "media-missing"
        assert result["exit_code"] == 1
        assert result["error"] == f"{NO_FILE_FOUND} (yt-dlp exited with code 1)"

    async def test_chat_downloader_environment(self, project, fake_ytdlp, fake_python, sink):
        fake_ytdlp()
        fake_python("chat_downloader", payload=[])

        result = await download_video(TEST_VIDEO_URL, sink)

        chat_dir = project["project_dir"] / "third_party" / "chat-downloader"
        assert f"PYTHONPATH={chat_dir}" in sink.text()
        assert f"cwd={project['project_dir']}" in sink.text()
        assert result["comment_count"] == 0

    async def test_without_comments(self, project, fake_ytdlp, sink):
        fake_ytdlp()

        result = await download_video(TEST_VIDEO_URL, sink, fetch_comments=False)

        assert result["status"] == "done"
        assert result["comments_csv"] is None
        assert "Fetching comments" not in sink.text()

    async def test_launch_failure(self, project, tmp_path, sink):
        with patch(
            "moviecut_tool.core.resolver.get_tool_search_dirs",
            return_value=[project["bin_dir"]],
        ), patch("moviecut_tool.core.resolver.FALLBACK_TOOL_DIR", str(tmp_path / "nowhere")):
            result = await download_video(TEST_VIDEO_URL, sink)

        assert result["success"] is False
        assert result["status"] == "failed"
        assert str(tmp_path / "nowhere" / "yt-dlp") in result["error"]
        assert str(project["bin_dir"]) in result["error"]
        assert "Download error:" in sink.text()

    async def test_url_without_id_gets_synthetic_job(self, project, fake_ytdlp, sink):
        fake_ytdlp()

        result = await download_video("https://example.com/live/stream", sink, fetch_comments=False)

        assert result["job_id"].startswith("video_")
        assert (project["download_dir"] / result["job_id"]).is_dir()


class TestDownloadJob:
    """Test the pipeline state machine."""

    def test_create_job(self, tmp_path):
        job = create_job("https://youtu.be/abc123?t=5", base_dir=tmp_path)

        assert job.job_id == "abc123"
        assert job.output_dir == tmp_path / "abc123"
        assert job.output_dir.is_dir()
        assert job.state == DownloadState.IDLE

    def test_legal_path(self, tmp_path):
        job = DownloadJob(url="u", output_dir=tmp_path, job_id="j")
        for state in (
            DownloadState.FETCHING_MEDIA,
            DownloadState.MEDIA_FOUND,
            DownloadState.FETCHING_COMMENTS,
            DownloadState.NORMALIZING_COMMENTS,
            DownloadState.DONE,
        ):
            job.advance(state)

        assert job.finished

    def test_illegal_transition(self, tmp_path):
        job = DownloadJob(url="u", output_dir=tmp_path, job_id="j")

        with pytest.raises(ValueError, match="idle -> done"):
            job.advance(DownloadState.DONE)

    def test_terminal_states_have_no_exit(self, tmp_path):
        job = DownloadJob(url="u", output_dir=tmp_path, job_id="j")
        job.advance(DownloadState.FETCHING_MEDIA)
        job.advance(DownloadState.MEDIA_MISSING)

        assert job.finished
        with pytest.raises(ValueError):
            job.advance(DownloadState.FETCHING_COMMENTS)

    def test_report_requires_terminal_state(self, tmp_path, sink):
        job = DownloadJob(url="u", output_dir=tmp_path, job_id="j")
        job.advance(DownloadState.FETCHING_MEDIA)

        with pytest.raises(ValueError, match="still fetching-media"):
            _report(job, sink)
