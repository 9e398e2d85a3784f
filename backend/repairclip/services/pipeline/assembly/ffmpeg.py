"""
ffmpeg invocation helpers: structured subprocess results, still-frame and
audio extraction.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List

from repairclip.core import MediaError, get_logger, get_media_duration

logger = get_logger(__name__, component="ffmpeg")

DIAGNOSTIC_TAIL_CHARS = 4000


@dataclass
class FFmpegResult:
    """Outcome of one ffmpeg run"""
    command: List[str]
    returncode: int
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        return self.stderr[-DIAGNOSTIC_TAIL_CHARS:]


async def run_ffmpeg(cmd: List[str], timeout: float = 600) -> FFmpegResult:
    """Run an ffmpeg command and capture its diagnostics.

    Raises:
        MediaError: if ffmpeg cannot be started or exceeds the timeout
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise MediaError("ffmpeg could not be started", diagnostic=str(exc)) from exc

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise MediaError(f"ffmpeg timed out after {timeout:.0f}s", diagnostic=" ".join(cmd)) from exc

    return FFmpegResult(command=cmd, returncode=process.returncode, stderr=stderr.decode(errors="replace"))


def build_frame_cmd(video_path: str, output_path: str, timestamp: float) -> List[str]:
    return [
        "ffmpeg", "-y",
        "-ss", f"{max(timestamp, 0.0):.3f}",
        "-i", video_path,
        "-frames:v", "1",
        "-q:v", "2",
        output_path,
    ]


def build_audio_cmd(video_path: str, output_path: str) -> List[str]:
    """Speech-friendly audio: mono, 16 kHz, 32 kbps mp3"""
    return [
        "ffmpeg", "-y",
        "-i", video_path,
        "-vn",
        "-acodec", "libmp3lame",
        "-ac", "1",
        "-ar", "16000",
        "-b:a", "32k",
        output_path,
    ]


async def extract_frame(video_path: Path, output_path: Path, offset_ratio: float = 0.5) -> Path:
    """Grab one still frame at ``offset_ratio`` of the video's duration.

    Raises:
        MediaError: if no frame was written
    """
    duration = await get_media_duration(video_path)
    result = await run_ffmpeg(build_frame_cmd(str(video_path), str(output_path), duration * offset_ratio), timeout=60)
    if not result.ok or not output_path.exists():
        raise MediaError(f"Frame extraction failed for {video_path.name}", diagnostic=result.diagnostic)
    logger.debug("Extracted frame", extra={"timestamp": duration * offset_ratio, "path": str(output_path)})
    return output_path


async def extract_audio(video_path: Path, output_path: Path) -> Path:
    """Extract the audio track for transcription.

    Raises:
        MediaError: if the video has no usable audio
    """
    result = await run_ffmpeg(build_audio_cmd(str(video_path), str(output_path)), timeout=300)
    if not result.ok or not output_path.exists():
        raise MediaError(f"Audio extraction failed for {video_path.name}", diagnostic=result.diagnostic)
    return output_path
