"""
Application configuration and settings
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from repairclip.core.runtime import parse_bool_env

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(int(raw), minimum)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return max(float(raw), minimum)
    except (TypeError, ValueError):
        return default


# Base directories
APP_DIR = Path(__file__).parent.parent
BACKEND_DIR = APP_DIR.parent

# API settings
API_TITLE = "RepairClip Worker"
API_DESCRIPTION = "Splices matching educational clips into vehicle diagnostic videos"
API_VERSION = "1.0.0"

# Storage
BUCKET_NAME = os.getenv("GOOGLE_STORAGE_BUCKET", "")
LIBRARY_BUCKET = os.getenv("LIBRARY_BUCKET", "") or BUCKET_NAME
LOCAL_STORAGE_ROOT = os.getenv("LOCAL_STORAGE_ROOT")  # directory-backed storage for development

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BACKEND_DIR / 'data' / 'repairclip.sqlite'}")

# Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")


@dataclass
class EncodingProfile:
    """One encoding regime of the stitch compiler."""
    name: str
    preset: str
    crf: int
    audio_bitrate: str
    max_bitrate: str | None = None
    buffer_size: str | None = None


@dataclass
class EncodingSettings:
    """Canonical frame/audio format and the two size-dependent encoding regimes."""
    width: int = 1280
    height: int = 720
    frame_rate: int = 30
    pixel_format: str = "yuv420p"
    audio_sample_rate: int = 44100
    audio_channel_layout: str = "stereo"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    size_threshold_bytes: int = 95 * 1024 * 1024
    quality_profile: EncodingProfile = field(default_factory=lambda: EncodingProfile(
        name="quality", preset="veryfast", crf=23, audio_bitrate="128k",
    ))
    size_profile: EncodingProfile = field(default_factory=lambda: EncodingProfile(
        name="size", preset="medium", crf=28, audio_bitrate="96k",
        max_bitrate="2500k", buffer_size="5000k",
    ))
    timeout_seconds: int = 1800

    @classmethod
    def from_env(cls) -> "EncodingSettings":
        return cls(
            size_threshold_bytes=_env_int("STITCH_SIZE_THRESHOLD_BYTES", 95 * 1024 * 1024, 1),
            quality_profile=EncodingProfile(
                name="quality",
                preset=os.getenv("STITCH_QUALITY_PRESET", "veryfast"),
                crf=_env_int("STITCH_QUALITY_CRF", 23, 0),
                audio_bitrate=os.getenv("STITCH_QUALITY_AUDIO_BITRATE", "128k"),
            ),
            size_profile=EncodingProfile(
                name="size",
                preset=os.getenv("STITCH_SIZE_PRESET", "medium"),
                crf=_env_int("STITCH_SIZE_CRF", 28, 0),
                audio_bitrate=os.getenv("STITCH_SIZE_AUDIO_BITRATE", "96k"),
                max_bitrate=os.getenv("STITCH_SIZE_MAX_BITRATE", "2500k"),
                buffer_size=os.getenv("STITCH_SIZE_BUFFER_SIZE", "5000k"),
            ),
            timeout_seconds=_env_int("STITCH_TIMEOUT_SECONDS", 1800, 30),
        )


@dataclass
class MatchSettings:
    """Content matcher behaviour switches."""
    scope_to_category: bool = True
    rank_by_score: bool = False
    synthesize_fallback: bool = True
    fallback_clip_prefix: str = "library/fallback"

    @classmethod
    def from_env(cls) -> "MatchSettings":
        return cls(
            scope_to_category=parse_bool_env(os.getenv("MATCH_SCOPE_TO_CATEGORY"), True),
            rank_by_score=parse_bool_env(os.getenv("MATCH_RANK_BY_SCORE"), False),
            synthesize_fallback=parse_bool_env(os.getenv("MATCH_SYNTHESIZE_FALLBACK"), True),
            fallback_clip_prefix=os.getenv("FALLBACK_CLIP_PREFIX", "library/fallback").rstrip("/"),
        )


@dataclass
class PipelineSettings:
    """Settings consumed by the job and restitch orchestrators."""
    bucket: str = ""
    library_bucket: str = ""
    intro_path: str = "videos/intro.mp4"
    outro_path: str = "videos/outro.mp4"
    workspace_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    frame_offset_ratio: float = 0.5
    restitch_suffix: str = "_restitched"

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        ratio = _env_float("FRAME_OFFSET_RATIO", 0.5, 0.0)
        return cls(
            bucket=BUCKET_NAME,
            library_bucket=LIBRARY_BUCKET,
            intro_path=os.getenv("INTRO_PATH", "videos/intro.mp4"),
            outro_path=os.getenv("OUTRO_PATH", "videos/outro.mp4"),
            workspace_root=Path(os.getenv("WORKSPACE_ROOT", tempfile.gettempdir())),
            frame_offset_ratio=min(ratio, 1.0),
            restitch_suffix=os.getenv("RESTITCH_SUFFIX", "_restitched"),
        )


__all__ = [
    "APP_DIR",
    "BACKEND_DIR",
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "BUCKET_NAME",
    "LIBRARY_BUCKET",
    "LOCAL_STORAGE_ROOT",
    "DATABASE_URL",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "EncodingProfile",
    "EncodingSettings",
    "MatchSettings",
    "PipelineSettings",
]
