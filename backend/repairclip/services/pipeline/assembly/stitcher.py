"""
Stitch compiler - concatenates a variable number of heterogeneous segments
into one streamable video.

Every segment is normalized to the canonical frame (scaled to fit, padded,
fixed frame rate and pixel format) and the canonical audio format before
concatenation, because user recordings and library clips rarely share a
resolution or sample rate. Segments without an audio track get a silent one
of the same duration.

Encoding adapts to total input size: small inputs use the quality profile,
large inputs the size profile (slower preset, higher CRF, capped bitrate).
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from repairclip.config import EncodingProfile, EncodingSettings
from repairclip.core import LogTimer, StitchError, get_logger, probe_media
from .ffmpeg import run_ffmpeg

logger = get_logger(__name__, component="stitcher")


@dataclass
class StitchSegment:
    path: Path
    size_bytes: int
    has_audio: bool = True
    duration: float = 0.0


@dataclass
class StitchPlan:
    """Ordered segments plus the encoding parameters chosen for them"""
    segments: List[StitchSegment]
    profile: EncodingProfile
    settings: EncodingSettings

    @property
    def total_bytes(self) -> int:
        return sum(s.size_bytes for s in self.segments)

    def parameters(self) -> Dict[str, Any]:
        """The encoding parameter set reported for this plan"""
        return {
            "profile": self.profile.name,
            "preset": self.profile.preset,
            "crf": self.profile.crf,
            "audio_bitrate": self.profile.audio_bitrate,
            "max_bitrate": self.profile.max_bitrate,
            "buffer_size": self.profile.buffer_size,
            "total_bytes": self.total_bytes,
            "segments": len(self.segments),
        }

    def _silence_inputs(self) -> Dict[int, int]:
        """Segment index -> ffmpeg input index of its generated silent track"""
        mapping: Dict[int, int] = {}
        next_index = len(self.segments)
        for i, segment in enumerate(self.segments):
            if not segment.has_audio:
                mapping[i] = next_index
                next_index += 1
        return mapping

    def filter_graph(self) -> str:
        s = self.settings
        silence = self._silence_inputs()
        chains = []
        for i in range(len(self.segments)):
            chains.append(
                f"[{i}:v:0]scale={s.width}:{s.height}:force_original_aspect_ratio=decrease,"
                f"pad={s.width}:{s.height}:(ow-iw)/2:(oh-ih)/2,setsar=1,"
                f"fps={s.frame_rate},format={s.pixel_format}[v{i}]"
            )
            audio_input = f"{silence[i]}:a:0" if i in silence else f"{i}:a:0"
            chains.append(
                f"[{audio_input}]aresample={s.audio_sample_rate},"
                f"aformat=sample_fmts=fltp:sample_rates={s.audio_sample_rate}"
                f":channel_layouts={s.audio_channel_layout}[a{i}]"
            )
        streams = "".join(f"[v{i}][a{i}]" for i in range(len(self.segments)))
        chains.append(f"{streams}concat=n={len(self.segments)}:v=1:a=1[v][a]")
        return ";".join(chains)

    def command(self, output_path: Path) -> List[str]:
        s = self.settings
        p = self.profile
        cmd = ["ffmpeg", "-y", "-hide_banner"]
        for segment in self.segments:
            cmd += ["-i", str(segment.path)]
        for i in self._silence_inputs():
            cmd += [
                "-f", "lavfi",
                "-t", f"{self.segments[i].duration:.3f}",
                "-i", f"anullsrc=r={s.audio_sample_rate}:cl={s.audio_channel_layout}",
            ]

        cmd += [
            "-filter_complex", self.filter_graph(),
            "-map", "[v]",
            "-map", "[a]",
            "-c:v", s.video_codec,
            "-preset", p.preset,
            "-crf", str(p.crf),
        ]
        if p.max_bitrate:
            cmd += ["-maxrate", p.max_bitrate]
        if p.buffer_size:
            cmd += ["-bufsize", p.buffer_size]
        cmd += [
            "-pix_fmt", s.pixel_format,
            "-r", str(s.frame_rate),
            "-c:a", s.audio_codec,
            "-b:a", p.audio_bitrate,
            "-ar", str(s.audio_sample_rate),
            "-ac", "2",
            "-movflags", "+faststart",
            "-shortest",
            str(output_path),
        ]
        return cmd


def select_profile(total_bytes: int, settings: EncodingSettings) -> EncodingProfile:
    """Quality profile below the size threshold, size profile at or above it."""
    if total_bytes < settings.size_threshold_bytes:
        return settings.quality_profile
    return settings.size_profile


def build_plan(segments: Sequence[StitchSegment], settings: EncodingSettings) -> StitchPlan:
    if not segments:
        raise StitchError("No segments to stitch")
    for segment in segments:
        if not segment.has_audio and segment.duration <= 0:
            raise StitchError(f"Cannot add silence to {segment.path.name}: unknown duration")
    total = sum(s.size_bytes for s in segments)
    return StitchPlan(segments=list(segments), profile=select_profile(total, settings), settings=settings)


class StitchCompiler:
    """Builds and runs the ffmpeg concatenation for an ordered list of files."""

    def __init__(self, settings: Optional[EncodingSettings] = None):
        self.settings = settings or EncodingSettings()

    async def _describe(self, path: Path) -> StitchSegment:
        info = await probe_media(path)
        return StitchSegment(
            path=path,
            size_bytes=path.stat().st_size,
            has_audio=info.has_audio,
            duration=info.duration,
        )

    async def plan(self, segments: Sequence[Path]) -> StitchPlan:
        if not segments:
            raise StitchError("No segments to stitch")
        described = await asyncio.gather(*(self._describe(Path(p)) for p in segments))
        return build_plan(described, self.settings)

    async def stitch(self, segments: Sequence[Path], output_path: Path) -> Path:
        """
        Concatenate ``segments`` in order into ``output_path``.

        Raises:
            StitchError: for an empty list or a failed encode; the ffmpeg
                diagnostic is kept on the exception for operator logs
        """
        plan = await self.plan(segments)
        logger.info("Stitch plan ready", extra=plan.parameters())

        with LogTimer(logger, f"stitching {len(plan.segments)} segments"):
            result = await run_ffmpeg(plan.command(output_path), timeout=self.settings.timeout_seconds)

        if not result.ok:
            logger.error("ffmpeg stitch failed", extra={"returncode": result.returncode,
                                                        "diagnostic": result.diagnostic})
            raise StitchError("Video stitching failed", diagnostic=result.diagnostic)
        if not output_path.exists():
            raise StitchError("Video stitching produced no output", diagnostic=result.diagnostic)
        return output_path
