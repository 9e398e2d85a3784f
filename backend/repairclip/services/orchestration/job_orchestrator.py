"""
Job orchestrator - takes one raw upload from ingestion to a finished video.

Stages run linearly: downloading, analyzing, matching, stitching, uploading.
Any stage may end the job as failed. Known rejections (nothing detected,
unrelated issues, several clips, no content) are reported with their own
user-facing message; every other fault is reported generically and the
details only go to the logs.
"""

import asyncio
import json
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from repairclip.core import (
    GENERIC_FAILURE_MESSAGE,
    LogTimer,
    MatchingError,
    MediaError,
    NoContentFound,
    NoIssuesDetected,
    SingleFocusViolation,
    StorageError,
    UnrelatedIssues,
    clear_context,
    get_logger,
    is_raw_path,
    processed_path_for,
    set_job_context,
    thumbnail_path_for,
    video_id_from_raw_path,
)
from repairclip.models.events import StorageObjectEvent
from repairclip.models.issues import AnalysisResult
from repairclip.models.library import Match
from repairclip.models.status import STAGE_MESSAGES, JobStatus, PipelineStage
from repairclip.services.infrastructure.storage import JobRecord
from repairclip.services.pipeline.assembly import extract_audio, extract_frame
from .concurrency import run_concurrently
from .services import PipelineServices
from .workspace import JobWorkspace

logger = get_logger(__name__, component="job_orchestrator")

SUCCESS_MESSAGE = "Video processed successfully"
FALLBACK_SUCCESS_MESSAGE = "Video processed successfully but fallback content was used."
MATCHING_FAILURE_MESSAGE = "Internal matching error"


class JobOrchestrator:
    """Runs the processing pipeline for storage upload events."""

    def __init__(self, services: PipelineServices):
        self.services = services
        self.settings = services.settings

    async def run_job(self, event: StorageObjectEvent) -> None:
        """Process one upload event. Never raises; the outcome is persisted on the job."""
        raw_path = event.name
        if not is_raw_path(raw_path):
            logger.debug("Ignoring object outside the raw namespace", extra={"object": raw_path})
            return

        async with self.services.locks.hold(raw_path):
            await self._run(raw_path)

    async def _run(self, raw_path: str) -> None:
        workspace = JobWorkspace(self.settings.workspace_root)
        set_job_context(video_id_from_raw_path(raw_path), workspace.run_id)
        logger.info("Job started", extra={"raw_path": raw_path})
        try:
            with workspace:
                await self._process(raw_path, workspace)
        except MatchingError as exc:
            logger.error("Content matching failed", extra={"error": str(exc.__cause__ or exc)}, exc_info=True)
            await self._fail(raw_path, MATCHING_FAILURE_MESSAGE)
        except (NoIssuesDetected, UnrelatedIssues, SingleFocusViolation, NoContentFound) as exc:
            logger.warning(f"Job rejected: {exc.user_message}", extra={"reason": type(exc).__name__})
            await self._fail(raw_path, exc.user_message)
        except Exception as exc:
            # Media, storage, analysis and anything unforeseen get the generic message
            logger.error(
                "Job failed",
                extra={"error": str(exc), "diagnostic": getattr(exc, "diagnostic", "")},
                exc_info=True,
            )
            await self._fail(raw_path, GENERIC_FAILURE_MESSAGE)
        finally:
            clear_context()

    async def _report(self, raw_path: str, status: JobStatus, message: str, **fields: Any) -> JobRecord:
        return await asyncio.to_thread(self.services.jobs.update_status, raw_path, status, message, **fields)

    async def _stage(self, raw_path: str, stage: PipelineStage) -> JobRecord:
        logger.info(f"Stage: {stage.value}")
        return await self._report(raw_path, JobStatus.PROCESSING, STAGE_MESSAGES[stage])

    async def _fail(self, raw_path: str, message: str) -> None:
        try:
            await self._report(raw_path, JobStatus.FAILED, message)
        except Exception as exc:
            logger.error("Could not record job failure", extra={"error": str(exc)}, exc_info=True)

    async def _fetch_optional(self, path: str, destination: Path) -> Optional[Path]:
        """Intro/outro are decoration; a missing one is left out of the sequence."""
        if not path:
            return None
        try:
            return await self.services.storage.download(path, destination, bucket=self.settings.bucket or None)
        except StorageError as exc:
            logger.warning("Optional segment unavailable", extra={"object": path, "error": str(exc)})
            return None

    async def _transcribe(self, video: Path, audio: Path) -> str:
        try:
            await extract_audio(video, audio)
        except MediaError as exc:
            logger.warning("No usable audio, analyzing frame only", extra={"diagnostic": exc.diagnostic})
            return ""
        return await self.services.analyzer.transcribe(audio)

    async def _analyze(self, raw_file: Path, workspace: JobWorkspace) -> tuple[str, Path, AnalysisResult]:
        frame, transcription = await run_concurrently(
            extract_frame(raw_file, workspace.path("frame.jpg"), self.settings.frame_offset_ratio),
            self._transcribe(raw_file, workspace.path("audio.mp3")),
        )
        analysis = await self.services.analyzer.analyze(transcription, frame)
        if not analysis.issues:
            raise NoIssuesDetected("Analyzer returned no issues")
        if not analysis.issues_related:
            raise UnrelatedIssues(f"{len(analysis.issues)} unrelated issues reported")
        return transcription, frame, analysis

    async def _match(self, job: JobRecord, analysis: AnalysisResult) -> Match:
        try:
            matches = await asyncio.to_thread(self.services.matcher.match, analysis.issues)
        except SingleFocusViolation:
            raise
        except Exception as exc:
            raise MatchingError("Content matcher raised") from exc

        if not matches:
            raise NoContentFound(f"No clip for {len(analysis.issues)} issues")

        recorded = await asyncio.to_thread(self.services.matches.record_matches, job.id, matches)
        logger.info("Clip selected", extra={"location": matches[0].location, "fallback": matches[0].is_fallback,
                                            "recorded": recorded})
        return matches[0]

    async def _process(self, raw_path: str, workspace: JobWorkspace) -> None:
        settings = self.settings
        storage = self.services.storage
        extension = PurePosixPath(raw_path).suffix or ".mp4"

        job = await self._stage(raw_path, PipelineStage.DOWNLOADING)
        raw_file = workspace.path(f"raw{extension}")
        intro, outro, _ = await run_concurrently(
            self._fetch_optional(settings.intro_path, workspace.path("intro.mp4")),
            self._fetch_optional(settings.outro_path, workspace.path("outro.mp4")),
            storage.download(raw_path, raw_file, bucket=settings.bucket or None),
        )

        await self._stage(raw_path, PipelineStage.ANALYZING)
        with LogTimer(logger, "analysis stage"):
            transcription, frame, analysis = await self._analyze(raw_file, workspace)

        await self._stage(raw_path, PipelineStage.MATCHING)
        match = await self._match(job, analysis)

        await self._stage(raw_path, PipelineStage.STITCHING)
        clip_file = workspace.path(f"clip{PurePosixPath(match.location).suffix or '.mp4'}")
        await storage.download(match.location, clip_file, bucket=settings.library_bucket or None)
        segments = [p for p in (intro, raw_file, clip_file, outro) if p is not None]
        output = workspace.path("output.mp4")
        await self.services.stitcher.stitch(segments, output)

        await self._stage(raw_path, PipelineStage.UPLOADING)
        thumbnail = await storage.upload(frame, thumbnail_path_for(raw_path), content_type="image/jpeg",
                                         bucket=settings.bucket or None)
        processed = await storage.upload(output, processed_path_for(raw_path), content_type="video/mp4",
                                         bucket=settings.bucket or None)

        message = FALLBACK_SUCCESS_MESSAGE if match.is_fallback else SUCCESS_MESSAGE
        await self._report(
            raw_path,
            JobStatus.COMPLETED,
            message,
            stitched_video_url=processed,
            thumbnail_url=thumbnail,
            transcription_text=transcription,
            detected_keywords=json.dumps(analysis.issues_payload()),
        )
        logger.info("Job completed", extra={"processed": processed, "fallback": match.is_fallback})


__all__ = ["JobOrchestrator"]
