"""
Domain models and event schemas
"""

from .status import JobStatus, PipelineStage, STAGE_MESSAGES
from .issues import IssueCategory, Issue, AnalysisResult
from .library import ClipReference, Match, BlueprintEntry
from .events import (
    RESTITCH_EVENT_TYPE,
    PubSubMessage,
    PushEnvelope,
    RestitchDirective,
    StorageObjectEvent,
    PipelineEvent,
    decode_message_data,
    classify_event,
)

__all__ = [
    "JobStatus",
    "PipelineStage",
    "STAGE_MESSAGES",
    "IssueCategory",
    "Issue",
    "AnalysisResult",
    "ClipReference",
    "Match",
    "BlueprintEntry",
    "RESTITCH_EVENT_TYPE",
    "PubSubMessage",
    "PushEnvelope",
    "RestitchDirective",
    "StorageObjectEvent",
    "PipelineEvent",
    "decode_message_data",
    "classify_event",
]
