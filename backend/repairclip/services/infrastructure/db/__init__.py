"""Relational store - SQLAlchemy engine, sessions and ORM models."""

from .database import Base, Database, get_database
from .models import VideoRecord, LibraryClipRecord, VideoIssueMatchRecord, utcnow

__all__ = [
    "Base",
    "Database",
    "get_database",
    "VideoRecord",
    "LibraryClipRecord",
    "VideoIssueMatchRecord",
    "utcnow",
]
