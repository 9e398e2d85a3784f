"""
Restitch orchestrator - rebuilds a job's video from its recorded clip
selections, honouring user overrides, without analysis or matching.

Outputs go next to the originals with a suffix. The job's status and message
are never changed; only the artifact paths and the update timestamp move.
"""

import asyncio
from pathlib import Path, PurePosixPath
from typing import List, Optional

from repairclip.core import (
    StorageError,
    clear_context,
    get_logger,
    processed_path_for,
    set_job_context,
    thumbnail_path_for,
)
from repairclip.models.library import BlueprintEntry
from repairclip.services.infrastructure.storage import JobRecord
from repairclip.services.pipeline.assembly import extract_frame
from .concurrency import run_concurrently
from .services import PipelineServices
from .workspace import JobWorkspace

logger = get_logger(__name__, component="restitch_orchestrator")


def blueprint_locations(entries: List[BlueprintEntry]) -> List[str]:
    """Clip locations in blueprint order; a clip chosen for several issues appears once."""
    locations: List[str] = []
    for entry in entries:
        location = entry.location
        if location and location not in locations:
            locations.append(location)
    return locations


class RestitchOrchestrator:
    """Handles RE_STITCH directives."""

    def __init__(self, services: PipelineServices):
        self.services = services
        self.settings = services.settings

    async def restitch(self, video_id: str) -> None:
        """Rebuild the stitched video for ``video_id``. Never raises."""
        try:
            job = await asyncio.to_thread(self.services.jobs.get, video_id)
        except Exception as exc:
            logger.error("Could not load job for restitch", extra={"video_id": video_id, "error": str(exc)},
                         exc_info=True)
            return
        if job is None:
            logger.warning("Restitch requested for unknown video", extra={"video_id": video_id})
            return

        async with self.services.locks.hold(job.raw_video_path):
            await self._run(job)

    async def _run(self, job: JobRecord) -> None:
        workspace = JobWorkspace(self.settings.workspace_root)
        set_job_context(job.id, workspace.run_id)
        try:
            entries = await asyncio.to_thread(self.services.matches.load_blueprint, job.id)
            locations = blueprint_locations(entries)
            if not locations:
                logger.info("No recorded clip selections, nothing to restitch")
                return

            logger.info("Restitch started", extra={"raw_path": job.raw_video_path, "clips": len(locations)})
            with workspace:
                await self._rebuild(job, locations, workspace)
        except Exception as exc:
            logger.error(
                "Restitch failed",
                extra={"error": str(exc), "diagnostic": getattr(exc, "diagnostic", "")},
                exc_info=True,
            )
        finally:
            clear_context()

    async def _fetch_optional(self, path: str, destination: Path) -> Optional[Path]:
        if not path:
            return None
        try:
            return await self.services.storage.download(path, destination, bucket=self.settings.bucket or None)
        except StorageError as exc:
            logger.warning("Optional segment unavailable", extra={"object": path, "error": str(exc)})
            return None

    async def _rebuild(self, job: JobRecord, locations: List[str], workspace: JobWorkspace) -> None:
        settings = self.settings
        storage = self.services.storage
        raw_path = job.raw_video_path
        suffix = settings.restitch_suffix

        raw_file = workspace.path(f"raw{PurePosixPath(raw_path).suffix or '.mp4'}")
        clip_files = [
            workspace.path(f"clip{i}{PurePosixPath(location).suffix or '.mp4'}")
            for i, location in enumerate(locations)
        ]
        intro, outro, *_ = await run_concurrently(
            self._fetch_optional(settings.intro_path, workspace.path("intro.mp4")),
            self._fetch_optional(settings.outro_path, workspace.path("outro.mp4")),
            storage.download(raw_path, raw_file, bucket=settings.bucket or None),
            *(
                storage.download(location, target, bucket=settings.library_bucket or None)
                for location, target in zip(locations, clip_files)
            ),
        )

        segments = [p for p in (intro, raw_file, *clip_files, outro) if p is not None]
        output = workspace.path("output.mp4")
        await self.services.stitcher.stitch(segments, output)
        frame = await extract_frame(raw_file, workspace.path("frame.jpg"), settings.frame_offset_ratio)

        thumbnail = await storage.upload(frame, thumbnail_path_for(raw_path, suffix), content_type="image/jpeg",
                                         bucket=settings.bucket or None)
        processed = await storage.upload(output, processed_path_for(raw_path, suffix), content_type="video/mp4",
                                         bucket=settings.bucket or None)

        await asyncio.to_thread(
            self.services.jobs.touch, raw_path, stitched_video_url=processed, thumbnail_url=thumbnail,
        )
        logger.info("Restitch completed", extra={"processed": processed})
