"""
Job repository - status reporting for video jobs.

Implements the Repository pattern so the orchestrators only depend on the
abstract interface. ``SqlJobRepository`` writes to the ``videos`` table;
tests substitute an in-memory implementation.

Writes are last-writer-wins and always stamp ``updated_at``.

Classes:
    JobRecord: Data model for job information
    JobRepository: Abstract interface for job status reporting
    SqlJobRepository: SQLAlchemy implementation
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select

from repairclip.models.status import JobStatus
from repairclip.services.infrastructure.db import Database, VideoRecord, get_database, utcnow

# Columns the orchestrators may set besides status/message
RESULT_FIELDS = frozenset({
    "stitched_video_url",
    "thumbnail_url",
    "transcription_text",
    "detected_keywords",
})


@dataclass
class JobRecord:
    """
    Data model representing a job's persisted state.

    Attributes:
        id: Job identifier (the ``videoId`` of restitch directives)
        raw_video_path: Source object path, the stable job key
        status: queued, processing, completed or failed
        message: Human-readable outcome
        stitched_video_url: Object path of the stitched output
        thumbnail_url: Object path of the thumbnail
        transcription_text: Transcript of the owner's description
        detected_keywords: Serialized issues payload
        created_at: Creation time
        updated_at: Time of the last write
    """
    id: str
    raw_video_path: str
    status: str
    message: Optional[str] = None
    stitched_video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    transcription_text: Optional[str] = None
    detected_keywords: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - RESULT_FIELDS
    if unknown:
        raise ValueError(f"Unknown job fields: {', '.join(sorted(unknown))}")


class JobRepository(ABC):
    """Abstract repository for job status reporting."""

    @abstractmethod
    def update_status(self, raw_path: str, status: JobStatus, message: str, **fields: Any) -> JobRecord:
        """
        Persist status, message and optional result fields for a job.

        The record is created if the raw path has never been seen.

        Args:
            raw_path: Source object path identifying the job
            status: New status
            message: Human-readable message
            **fields: Any of stitched_video_url, thumbnail_url,
                transcription_text, detected_keywords

        Returns:
            The updated JobRecord
        """
        pass

    @abstractmethod
    def touch(self, raw_path: str, **fields: Any) -> Optional[JobRecord]:
        """
        Update result fields and the update timestamp, leaving status alone.

        Returns:
            The updated JobRecord, or None if the job does not exist
        """
        pass

    @abstractmethod
    def get(self, job_id: str) -> Optional[JobRecord]:
        pass

    @abstractmethod
    def get_by_raw_path(self, raw_path: str) -> Optional[JobRecord]:
        pass


class SqlJobRepository(JobRepository):
    """Job repository backed by the ``videos`` table."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    def update_status(self, raw_path: str, status: JobStatus, message: str, **fields: Any) -> JobRecord:
        _check_fields(fields)
        with self.database.session() as session:
            record = session.scalar(select(VideoRecord).where(VideoRecord.raw_video_path == raw_path))
            if record is None:
                record = VideoRecord(raw_video_path=raw_path)
                session.add(record)

            record.status = status.value
            record.message = message
            for key, value in fields.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            session.flush()
            return self._to_record(record)

    def touch(self, raw_path: str, **fields: Any) -> Optional[JobRecord]:
        _check_fields(fields)
        with self.database.session() as session:
            record = session.scalar(select(VideoRecord).where(VideoRecord.raw_video_path == raw_path))
            if record is None:
                return None
            for key, value in fields.items():
                setattr(record, key, value)
            record.updated_at = utcnow()
            session.flush()
            return self._to_record(record)

    def get(self, job_id: str) -> Optional[JobRecord]:
        with self.database.session() as session:
            record = session.get(VideoRecord, job_id)
            return self._to_record(record) if record else None

    def get_by_raw_path(self, raw_path: str) -> Optional[JobRecord]:
        with self.database.session() as session:
            record = session.scalar(select(VideoRecord).where(VideoRecord.raw_video_path == raw_path))
            return self._to_record(record) if record else None

    @staticmethod
    def _to_record(record: VideoRecord) -> JobRecord:
        return JobRecord(
            id=record.id,
            raw_video_path=record.raw_video_path,
            status=record.status,
            message=record.message,
            stitched_video_url=record.stitched_video_url,
            thumbnail_url=record.thumbnail_url,
            transcription_text=record.transcription_text,
            detected_keywords=record.detected_keywords,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
