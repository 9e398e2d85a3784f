"""
ORM models for jobs, the educational library and the match audit trail.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoRecord(Base):
    """One submitted diagnostic video, keyed by its raw storage path."""
    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    raw_video_path: Mapped[str] = mapped_column(String(512), unique=True, index=True)

    status: Mapped[str] = mapped_column(String(20), default="queued")
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    stitched_video_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    transcription_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    detected_keywords: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # serialized issues

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class LibraryClipRecord(Base):
    """An educational clip. Iteration order is the primary key order."""
    __tablename__ = "educational_library"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300))
    video_url: Mapped[str] = mapped_column(String(1024))
    keywords: Mapped[list] = mapped_column(JSON, default=list)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class VideoIssueMatchRecord(Base):
    """Audit trail: which clip was chosen for which detected issue.

    ``user_clip_id`` is set when the owner overrides the AI choice; the
    restitch flow prefers it.
    """
    __tablename__ = "video_issue_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(String(36), ForeignKey("videos.id"), index=True)

    problem: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    keywords: Mapped[list] = mapped_column(JSON, default=list)

    ai_clip_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("educational_library.id"), nullable=True
    )
    ai_clip_location: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    user_clip_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("educational_library.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
