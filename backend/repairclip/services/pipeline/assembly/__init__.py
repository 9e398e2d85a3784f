"""Video assembly - ffmpeg helpers and the stitch compiler."""

from .ffmpeg import FFmpegResult, run_ffmpeg, extract_frame, extract_audio
from .stitcher import StitchCompiler, StitchPlan, StitchSegment, build_plan, select_profile

__all__ = [
    "FFmpegResult",
    "run_ffmpeg",
    "extract_frame",
    "extract_audio",
    "StitchCompiler",
    "StitchPlan",
    "StitchSegment",
    "build_plan",
    "select_profile",
]
