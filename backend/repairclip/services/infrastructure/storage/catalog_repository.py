"""
Clip catalog - read access to the educational library.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select

from repairclip.models.library import ClipReference
from repairclip.services.infrastructure.db import Database, LibraryClipRecord, get_database

GENERIC_MARKERS = ("General", "Overview")


def keyword_hits(issue_keywords: Sequence[str], clip_keywords: Sequence[str]) -> int:
    """Number of issue keywords found (case-insensitive substring) in any clip keyword."""
    lowered_clip = [k.lower() for k in clip_keywords if k]
    hits = 0
    for keyword in issue_keywords:
        needle = keyword.strip().lower()
        if needle and any(needle in candidate for candidate in lowered_clip):
            hits += 1
    return hits


def mentions(term: str, clip: ClipReference) -> bool:
    needle = term.lower()
    if needle in clip.title.lower():
        return True
    return any(needle in k.lower() for k in clip.keywords)


def overview_rank(clip: ClipReference) -> int:
    """0 for "General" titles, 1 for "Overview" titles, 2 otherwise."""
    title = clip.title.lower()
    for rank, marker in enumerate(GENERIC_MARKERS):
        if marker.lower() in title:
            return rank
    return len(GENERIC_MARKERS)


def select_keyword_matches(
    clips: Iterable[ClipReference],
    keywords: Sequence[str],
    category: Optional[str] = None,
) -> List[ClipReference]:
    """Active clips sharing a keyword with the issue, in catalog order."""
    if not keywords:
        return []
    return [
        clip for clip in clips
        if clip.is_active
        and (category is None or clip.category == category)
        and keyword_hits(keywords, clip.keywords) > 0
    ]


def is_generic(clip: ClipReference) -> bool:
    """A "General" or "Overview" marker in the title or keywords."""
    return any(mentions(marker, clip) for marker in GENERIC_MARKERS)


def select_category_overviews(clips: Iterable[ClipReference], category: str) -> List[ClipReference]:
    """Active generic clips for the category, General titles before Overview titles before the rest.

    A clip qualifies when it carries the category (column, title or keywords)
    together with a generic marker. Specific clips of the same category never do.
    """
    candidates = [
        clip for clip in clips
        if clip.is_active
        and (clip.category == category or mentions(category, clip))
        and is_generic(clip)
    ]
    # sorted() is stable, so catalog order breaks ties
    return sorted(candidates, key=overview_rank)


class ClipCatalog(ABC):
    """Abstract read interface over the educational library."""

    @abstractmethod
    def find_by_keywords(self, keywords: Sequence[str], category: Optional[str] = None) -> List[ClipReference]:
        """Active clips whose keywords contain any of ``keywords``, optionally within one category."""
        pass

    @abstractmethod
    def find_category_overviews(self, category: str) -> List[ClipReference]:
        """Generic clips for a category, most generic first."""
        pass

    @abstractmethod
    def get(self, clip_id: str) -> Optional[ClipReference]:
        pass


class SqlClipCatalog(ClipCatalog):
    """Catalog backed by the ``educational_library`` table.

    Keyword filtering happens in Python so the same queries work on
    PostgreSQL and SQLite.
    """

    def __init__(self, database: Optional[Database] = None):
        self.database = database or get_database()

    def _active_clips(self, category: Optional[str] = None) -> List[ClipReference]:
        query = select(LibraryClipRecord).where(LibraryClipRecord.is_active.is_(True))
        if category is not None:
            query = query.where(LibraryClipRecord.category == category)
        query = query.order_by(LibraryClipRecord.id)
        with self.database.session() as session:
            return [self._to_reference(row) for row in session.scalars(query)]

    def find_by_keywords(self, keywords: Sequence[str], category: Optional[str] = None) -> List[ClipReference]:
        if not keywords:
            return []
        return select_keyword_matches(self._active_clips(category), keywords)

    def find_category_overviews(self, category: str) -> List[ClipReference]:
        return select_category_overviews(self._active_clips(), category)

    def get(self, clip_id: str) -> Optional[ClipReference]:
        try:
            key = int(clip_id)
        except (TypeError, ValueError):
            return None
        with self.database.session() as session:
            row = session.get(LibraryClipRecord, key)
            return self._to_reference(row) if row else None

    @staticmethod
    def _to_reference(row: LibraryClipRecord) -> ClipReference:
        return ClipReference(
            id=str(row.id),
            title=row.title,
            location=row.video_url,
            keywords=list(row.keywords or []),
            category=row.category,
            is_active=bool(row.is_active),
        )
