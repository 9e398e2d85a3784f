"""
Tests for core/media module
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from repairclip.core import MediaError
from repairclip.core.media import get_media_duration, parse_probe_output, probe_media


PROBE_PAYLOAD = {
    "streams": [
        {"codec_type": "video", "width": 1920, "height": 1080},
        {"codec_type": "audio", "sample_rate": "48000"},
    ],
    "format": {"duration": "12.480000", "size": "1048576"},
}


class TestParseProbeOutput:
    def test_streams_counted(self):
        info = parse_probe_output("clip.mp4", PROBE_PAYLOAD)
        assert info.video_streams == 1
        assert info.audio_streams == 1
        assert info.has_audio and info.has_video
        assert (info.width, info.height) == (1920, 1080)

    def test_duration_and_size(self):
        info = parse_probe_output("clip.mp4", PROBE_PAYLOAD)
        assert info.duration == pytest.approx(12.48)
        assert info.size_bytes == 1048576

    def test_silent_video(self):
        info = parse_probe_output("clip.mp4", {"streams": [{"codec_type": "video"}], "format": {}})
        assert not info.has_audio
        assert info.duration == 0.0

    def test_malformed_duration(self):
        info = parse_probe_output("clip.mp4", {"format": {"duration": "N/A"}})
        assert info.duration == 0.0


def _process(returncode=0, stdout=b"", stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    return process


@pytest.mark.asyncio
class TestProbeMedia:
    async def test_probe_success(self):
        process = _process(stdout=json.dumps(PROBE_PAYLOAD).encode())
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
            info = await probe_media("clip.mp4")
        assert info.duration == pytest.approx(12.48)
        assert mock_exec.call_args[0][0] == "ffprobe"

    async def test_probe_failure_carries_diagnostic(self):
        process = _process(returncode=1, stderr=b"clip.mp4: Invalid data found")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(MediaError) as excinfo:
                await probe_media("clip.mp4")
        assert "Invalid data" in excinfo.value.diagnostic

    async def test_missing_ffprobe(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ffprobe"))):
            with pytest.raises(MediaError):
                await probe_media("clip.mp4")

    async def test_duration_defaults_to_zero(self):
        process = _process(returncode=1, stderr=b"broken")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            assert await get_media_duration("clip.mp4") == 0.0

    async def test_timeout_kills_ffprobe(self):
        async def hang():
            await asyncio.sleep(1)

        process = MagicMock()
        process.communicate = hang
        process.wait = AsyncMock(return_value=-9)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)), \
             patch("repairclip.core.media.PROBE_TIMEOUT_SECONDS", 0.01):
            with pytest.raises(MediaError, match="timed out"):
                await probe_media("clip.mp4")

        process.kill.assert_called_once()
        process.wait.assert_awaited_once()
