"""
Core Module - Cross-cutting concerns and shared infrastructure

Organization:
    - logging.py: Structured logging configuration and correlation ids
    - exceptions.py: Error taxonomy with user-safe messages
    - media.py: ffprobe inspection
    - paths.py: Storage namespace conventions
    - runtime.py: Startup checks for external tools

Usage:
    from repairclip.core import get_logger, processed_path_for
"""

from .logging import (
    setup_logging,
    get_logger,
    set_message_id,
    set_job_context,
    clear_context,
    LogTimer,
)

from .exceptions import (
    GENERIC_FAILURE_MESSAGE,
    RepairClipError,
    PipelineError,
    NoIssuesDetected,
    UnrelatedIssues,
    SingleFocusViolation,
    NoContentFound,
    MediaError,
    StitchError,
    InfrastructureError,
    StorageError,
    AnalysisError,
    MatchingError,
)

from .media import (
    MediaInfo,
    probe_media,
    get_media_duration,
)

from .paths import (
    RAW_PREFIX,
    is_raw_path,
    video_id_from_raw_path,
    thumbnail_path_for,
    processed_path_for,
    resolve_object_location,
)

from .runtime import (
    REQUIRED_MEDIA_TOOLS,
    parse_bool_env,
    missing_runtime_tools,
    run_startup_runtime_checks,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "set_message_id",
    "set_job_context",
    "clear_context",
    "LogTimer",
    # Errors
    "GENERIC_FAILURE_MESSAGE",
    "RepairClipError",
    "PipelineError",
    "NoIssuesDetected",
    "UnrelatedIssues",
    "SingleFocusViolation",
    "NoContentFound",
    "MediaError",
    "StitchError",
    "InfrastructureError",
    "StorageError",
    "AnalysisError",
    "MatchingError",
    # Media
    "MediaInfo",
    "probe_media",
    "get_media_duration",
    # Paths
    "RAW_PREFIX",
    "is_raw_path",
    "video_id_from_raw_path",
    "thumbnail_path_for",
    "processed_path_for",
    "resolve_object_location",
    # Runtime
    "REQUIRED_MEDIA_TOOLS",
    "parse_bool_env",
    "missing_runtime_tools",
    "run_startup_runtime_checks",
]
