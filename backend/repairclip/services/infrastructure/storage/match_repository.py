"""
Match repository - audit trail of issue-to-clip selections and the
restitch blueprint derived from it.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from sqlalchemy import select

from repairclip.models.library import BlueprintEntry, Match
from repairclip.services.infrastructure.db import (
    Database,
    LibraryClipRecord,
    VideoIssueMatchRecord,
    get_database,
)


def _clip_pk(clip_id: Optional[str]) -> Optional[int]:
    if clip_id is None:
        return None
    try:
        return int(clip_id)
    except (TypeError, ValueError):
        return None


class MatchRepository(ABC):
    """Abstract store for recorded clip selections."""

    @abstractmethod
    def record_matches(self, video_id: str, matches: Sequence[Match]) -> int:
        """Record one row per covered issue of each match. Returns the number of rows written."""
        pass

    @abstractmethod
    def load_blueprint(self, video_id: str) -> List[BlueprintEntry]:
        """Recorded selections for a video in insertion order, overrides resolved."""
        pass


class SqlMatchRepository(MatchRepository):
    """Match repository backed by ``video_issue_matches``."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    def record_matches(self, video_id: str, matches: Sequence[Match]) -> int:
        written = 0
        with self.database.session() as session:
            for match in matches:
                for issue in match.covered_issues or [match.issue]:
                    session.add(VideoIssueMatchRecord(
                        video_id=video_id,
                        problem=issue.problem,
                        category=issue.category_name,
                        keywords=list(issue.keywords),
                        ai_clip_id=_clip_pk(match.clip_id),
                        ai_clip_location=match.location,
                    ))
                    written += 1
        return written

    def load_blueprint(self, video_id: str) -> List[BlueprintEntry]:
        query = (
            select(VideoIssueMatchRecord)
            .where(VideoIssueMatchRecord.video_id == video_id)
            .order_by(VideoIssueMatchRecord.id)
        )
        entries: List[BlueprintEntry] = []
        with self.database.session() as session:
            for row in session.scalars(query):
                override_location = None
                if row.user_clip_id is not None:
                    override = session.get(LibraryClipRecord, row.user_clip_id)
                    override_location = override.video_url if override else None

                ai_location = row.ai_clip_location
                if ai_location is None and row.ai_clip_id is not None:
                    ai_clip = session.get(LibraryClipRecord, row.ai_clip_id)
                    ai_location = ai_clip.video_url if ai_clip else None

                entries.append(BlueprintEntry(
                    problem=row.problem,
                    keywords=list(row.keywords or []),
                    ai_clip_id=str(row.ai_clip_id) if row.ai_clip_id is not None else None,
                    ai_location=ai_location,
                    override_clip_id=str(row.user_clip_id) if row.user_clip_id is not None else None,
                    override_location=override_location,
                ))
        return entries
