"""
Media utilities - ffprobe inspection of local media files
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import MediaError
from .logging import get_logger

logger = get_logger(__name__, component="media")

PROBE_TIMEOUT_SECONDS = 30


@dataclass
class MediaInfo:
    """Stream layout of a media file as reported by ffprobe"""
    path: str
    duration: float
    size_bytes: int
    video_streams: int
    audio_streams: int
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def has_audio(self) -> bool:
        return self.audio_streams > 0

    @property
    def has_video(self) -> bool:
        return self.video_streams > 0


def parse_probe_output(path: str, payload: Dict[str, Any]) -> MediaInfo:
    """Build a MediaInfo from `ffprobe -print_format json -show_format -show_streams` output"""
    streams = payload.get("streams") or []
    fmt = payload.get("format") or {}

    video = [s for s in streams if s.get("codec_type") == "video"]
    audio = [s for s in streams if s.get("codec_type") == "audio"]

    try:
        duration = float(fmt.get("duration") or 0.0)
    except (TypeError, ValueError):
        duration = 0.0
    try:
        size = int(fmt.get("size") or 0)
    except (TypeError, ValueError):
        size = 0

    return MediaInfo(
        path=path,
        duration=duration,
        size_bytes=size,
        video_streams=len(video),
        audio_streams=len(audio),
        width=video[0].get("width") if video else None,
        height=video[0].get("height") if video else None,
    )


async def probe_media(file_path: str | Path) -> MediaInfo:
    """Inspect a media file with ffprobe.

    Raises:
        MediaError: if ffprobe cannot read the file
    """
    cmd = [
        "ffprobe",
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(file_path),
    ]
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise MediaError(f"ffprobe could not run for {file_path}", diagnostic=str(exc)) from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=PROBE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        process.kill()
        await process.wait()
        raise MediaError(f"ffprobe timed out for {file_path}", diagnostic=" ".join(cmd)) from exc

    if process.returncode != 0:
        raise MediaError(
            f"ffprobe failed for {file_path}",
            diagnostic=stderr.decode(errors="replace")[-2000:],
        )

    try:
        payload = json.loads(stdout.decode() or "{}")
    except json.JSONDecodeError as exc:
        raise MediaError(f"ffprobe returned unreadable output for {file_path}", diagnostic=str(exc)) from exc

    return parse_probe_output(str(file_path), payload)


async def get_media_duration(file_path: str | Path) -> float:
    """Duration in seconds, or 0.0 when the file cannot be probed"""
    try:
        info = await probe_media(file_path)
    except MediaError as exc:
        logger.warning(
            "Could not determine media duration",
            extra={"path": str(file_path), "error": str(exc), "diagnostic": exc.diagnostic},
        )
        return 0.0
    return info.duration
