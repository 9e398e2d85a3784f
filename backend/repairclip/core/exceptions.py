"""
Core Exceptions
Error taxonomy for the worker. Pipeline errors carry the message that is safe
to show the vehicle owner; everything else is reported generically.
"""

GENERIC_FAILURE_MESSAGE = "internal processing error"


class RepairClipError(Exception):
    """Base exception for all application errors."""
    pass


class PipelineError(RepairClipError):
    """Base exception for processing pipeline errors."""

    user_message = GENERIC_FAILURE_MESSAGE


class NoIssuesDetected(PipelineError):
    user_message = "no issues detected by AI"


class UnrelatedIssues(PipelineError):
    user_message = "Please mention only one problem per video, or ensure all problems are related."


class SingleFocusViolation(PipelineError):
    """Detected issues resolved to more than one distinct educational clip."""

    user_message = "focus on one problem at a time"

    def __init__(self, locations):
        self.locations = sorted(locations)
        super().__init__(f"Issues resolved to {len(self.locations)} distinct clips: {self.locations}")


class NoContentFound(PipelineError):
    user_message = "no educational content found for detected issues"


class MediaError(PipelineError):
    """An ffmpeg/ffprobe invocation failed. `diagnostic` is for operator logs only."""

    def __init__(self, message: str, diagnostic: str = ""):
        super().__init__(message)
        self.diagnostic = diagnostic


class StitchError(MediaError):
    pass


class InfrastructureError(RepairClipError):
    """Base exception for infrastructure errors (storage, database, LLM)."""
    pass


class StorageError(InfrastructureError):
    pass


class AnalysisError(InfrastructureError):
    pass


class MatchingError(InfrastructureError):
    """The clip catalog could not be queried."""
    pass
