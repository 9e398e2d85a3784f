"""
Job status constants and enumerations.
"""

from enum import Enum


class JobStatus(Enum):
    """Persisted status of a video job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class PipelineStage(Enum):
    """Stages of a processing run. Only logged and surfaced in messages, not persisted."""

    QUEUED = "queued"
    DOWNLOADING = "downloading"
    ANALYZING = "analyzing"
    MATCHING = "matching"
    STITCHING = "stitching"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


STAGE_MESSAGES = {
    PipelineStage.DOWNLOADING: "Downloading assets...",
    PipelineStage.ANALYZING: "Analyzing video...",
    PipelineStage.MATCHING: "Finding educational content...",
    PipelineStage.STITCHING: "Stitching video...",
    PipelineStage.UPLOADING: "Uploading final video...",
}


__all__ = ["JobStatus", "PipelineStage", "STAGE_MESSAGES"]
