"""
Tests for repairclip.services.pipeline.assembly.ffmpeg
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repairclip.core import MediaError
from repairclip.services.pipeline.assembly.ffmpeg import (
    FFmpegResult,
    build_audio_cmd,
    build_frame_cmd,
    extract_audio,
    extract_frame,
    run_ffmpeg,
)


class TestCommands:
    def test_audio_is_speech_friendly(self):
        cmd = build_audio_cmd("raw.mp4", "audio.mp3")
        assert cmd[cmd.index("-ac") + 1] == "1"
        assert cmd[cmd.index("-ar") + 1] == "16000"
        assert cmd[cmd.index("-b:a") + 1] == "32k"
        assert "-vn" in cmd

    def test_frame_timestamp(self):
        cmd = build_frame_cmd("raw.mp4", "frame.jpg", 6.25)
        assert cmd[cmd.index("-ss") + 1] == "6.250"
        assert cmd[cmd.index("-frames:v") + 1] == "1"

    def test_negative_timestamp_clamped(self):
        cmd = build_frame_cmd("raw.mp4", "frame.jpg", -1)
        assert cmd[cmd.index("-ss") + 1] == "0.000"


class TestFFmpegResult:
    def test_diagnostic_is_tail(self):
        result = FFmpegResult(command=[], returncode=1, stderr="a" * 5000 + "END")
        assert result.diagnostic.endswith("END")
        assert len(result.diagnostic) == 4000
        assert not result.ok


def _process(returncode=0, stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(None, stderr))
    return process


@pytest.mark.asyncio
class TestRunFFmpeg:
    async def test_captures_stderr(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_process(1, b"bad input"))):
            result = await run_ffmpeg(["ffmpeg", "-i", "x"])
        assert result.returncode == 1
        assert result.stderr == "bad input"

    async def test_missing_binary(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ffmpeg"))):
            with pytest.raises(MediaError):
                await run_ffmpeg(["ffmpeg"])


@pytest.mark.asyncio
class TestExtraction:
    async def test_frame_at_offset_ratio(self, tmp_path):
        output = tmp_path / "frame.jpg"

        async def fake_run(cmd, timeout):
            output.write_bytes(b"jpeg")
            return FFmpegResult(command=cmd, returncode=0, stderr="")

        with patch("repairclip.services.pipeline.assembly.ffmpeg.get_media_duration", AsyncMock(return_value=20.0)), \
             patch("repairclip.services.pipeline.assembly.ffmpeg.run_ffmpeg", side_effect=fake_run) as run:
            assert await extract_frame(tmp_path / "raw.mp4", output, 0.5) == output
        cmd = run.call_args[0][0]
        assert cmd[cmd.index("-ss") + 1] == "10.000"

    async def test_frame_failure(self, tmp_path):
        failed = FFmpegResult(command=[], returncode=1, stderr="moov atom not found")
        with patch("repairclip.services.pipeline.assembly.ffmpeg.get_media_duration", AsyncMock(return_value=0.0)), \
             patch("repairclip.services.pipeline.assembly.ffmpeg.run_ffmpeg", AsyncMock(return_value=failed)):
            with pytest.raises(MediaError) as excinfo:
                await extract_frame(tmp_path / "raw.mp4", tmp_path / "frame.jpg")
        assert "moov atom" in excinfo.value.diagnostic

    async def test_audio_missing_output(self, tmp_path):
        result = FFmpegResult(command=[], returncode=0, stderr="")
        with patch("repairclip.services.pipeline.assembly.ffmpeg.run_ffmpeg", AsyncMock(return_value=result)):
            with pytest.raises(MediaError):
                await extract_audio(tmp_path / "raw.mp4", tmp_path / "audio.mp3")
