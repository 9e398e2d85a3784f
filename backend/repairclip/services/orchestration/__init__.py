"""Orchestration - job and restitch runs over injected pipeline services."""

from .job_orchestrator import JobOrchestrator
from .restitch_orchestrator import RestitchOrchestrator, blueprint_locations
from .locks import JobLocks
from .services import (
    PipelineServices,
    build_pipeline_services,
    get_pipeline_services,
    set_pipeline_services,
)
from .workspace import JobWorkspace

__all__ = [
    "JobOrchestrator",
    "RestitchOrchestrator",
    "blueprint_locations",
    "JobLocks",
    "PipelineServices",
    "build_pipeline_services",
    "get_pipeline_services",
    "set_pipeline_services",
    "JobWorkspace",
]
