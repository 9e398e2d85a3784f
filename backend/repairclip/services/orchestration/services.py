"""
Collaborators shared by the orchestrators, and the production wiring for them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from repairclip.config import (
    BUCKET_NAME,
    LOCAL_STORAGE_ROOT,
    EncodingSettings,
    MatchSettings,
    PipelineSettings,
)
from repairclip.core import get_logger
from repairclip.services.infrastructure.db import Database, get_database
from repairclip.services.infrastructure.llm import Analyzer, GeminiAnalyzer
from repairclip.services.infrastructure.storage import (
    GCSStorageGateway,
    JobRepository,
    LocalStorageGateway,
    MatchRepository,
    SqlClipCatalog,
    SqlJobRepository,
    SqlMatchRepository,
    StorageGateway,
)
from repairclip.services.pipeline.assembly import StitchCompiler
from repairclip.services.pipeline.matching import ContentMatcher
from .locks import JobLocks

logger = get_logger(__name__, component="services")


@dataclass
class PipelineServices:
    storage: StorageGateway
    jobs: JobRepository
    matcher: ContentMatcher
    matches: MatchRepository
    analyzer: Analyzer
    stitcher: StitchCompiler
    settings: PipelineSettings = field(default_factory=PipelineSettings)
    locks: JobLocks = field(default_factory=JobLocks)


def build_storage_gateway() -> StorageGateway:
    if LOCAL_STORAGE_ROOT:
        logger.info("Using local storage", extra={"root": LOCAL_STORAGE_ROOT})
        return LocalStorageGateway(Path(LOCAL_STORAGE_ROOT), default_bucket=BUCKET_NAME or "default")
    return GCSStorageGateway(BUCKET_NAME)


def build_pipeline_services(database: Optional[Database] = None) -> PipelineServices:
    """Production wiring: SQL repositories, GCS (or local) storage, Gemini, ffmpeg."""
    database = database or get_database()
    return PipelineServices(
        storage=build_storage_gateway(),
        jobs=SqlJobRepository(database),
        matcher=ContentMatcher(SqlClipCatalog(database), MatchSettings.from_env()),
        matches=SqlMatchRepository(database),
        analyzer=GeminiAnalyzer(),
        stitcher=StitchCompiler(EncodingSettings.from_env()),
        settings=PipelineSettings.from_env(),
    )


_services: Optional[PipelineServices] = None


def get_pipeline_services() -> PipelineServices:
    """Get the process-wide services instance"""
    global _services
    if _services is None:
        _services = build_pipeline_services()
    return _services


def set_pipeline_services(services: Optional[PipelineServices]) -> None:
    """Replace the process-wide services instance (tests, alternative wiring)"""
    global _services
    _services = services
