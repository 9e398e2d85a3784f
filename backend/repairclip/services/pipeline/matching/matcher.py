"""
Content matching - resolve detected issues to one educational clip.

Each issue is resolved in two phases:

1. Specific: an active catalog clip sharing a keyword with the issue
   (optionally scoped to the issue category).
2. Fallback: only when phase 1 found nothing and the issue has a category.
   A generic clip for the category from the catalog, or a synthesized
   canonical location when the catalog has none. Fallback matches are titled
   after their category, which is how downstream reporting recognizes them.

A job inserts a single clip, so all resolved matches must share one location
(single-focus). Several issues resolving to the same clip collapse into one
representative match; issues resolving to different clips raise
``SingleFocusViolation``.
"""

import re
from typing import List, Optional, Sequence

from repairclip.config import MatchSettings
from repairclip.core import SingleFocusViolation, get_logger
from repairclip.models.issues import Issue
from repairclip.models.library import ClipReference, Match
from repairclip.services.infrastructure.storage.catalog_repository import ClipCatalog, keyword_hits

logger = get_logger(__name__, component="content_matcher")


def category_slug(category: str) -> str:
    """``Cooling System`` -> ``cooling-system``"""
    return re.sub(r"[^a-z0-9]+", "-", category.lower()).strip("-")


class ContentMatcher:
    """Resolves issues against a clip catalog under the single-focus policy."""

    def __init__(self, catalog: ClipCatalog, settings: Optional[MatchSettings] = None):
        self.catalog = catalog
        self.settings = settings or MatchSettings()

    def synthesized_location(self, category: str) -> str:
        return f"{self.settings.fallback_clip_prefix}/{category_slug(category)}.mp4"

    def _specific(self, issue: Issue) -> Optional[ClipReference]:
        if not issue.keywords:
            return None
        scope = issue.category_name if self.settings.scope_to_category else None
        candidates = self.catalog.find_by_keywords(issue.keywords, scope)
        if not candidates:
            return None
        if self.settings.rank_by_score:
            # Stable sort keeps catalog order among equal scores
            candidates = sorted(candidates, key=lambda c: -keyword_hits(issue.keywords, c.keywords))
        return candidates[0]

    def _fallback(self, issue: Issue) -> Optional[Match]:
        category = issue.category_name
        if category is None:
            return None

        overviews = self.catalog.find_category_overviews(category)
        if overviews:
            clip = overviews[0]
            return Match(
                issue=issue, clip_id=clip.id, location=clip.location,
                title=category, category=category, fallback=True,
            )

        if not self.settings.synthesize_fallback:
            return None
        return Match(
            issue=issue, clip_id=None, location=self.synthesized_location(category),
            title=category, category=category, fallback=True,
        )

    def resolve(self, issue: Issue) -> Optional[Match]:
        """Resolve one issue, or None when neither phase finds content."""
        clip = self._specific(issue)
        if clip is not None:
            logger.info("Specific match", extra={"problem": issue.problem, "clip_title": clip.title})
            return Match(
                issue=issue, clip_id=clip.id, location=clip.location,
                title=clip.title, category=issue.category_name or clip.category,
            )

        match = self._fallback(issue)
        if match is not None:
            logger.info("Fallback match", extra={"problem": issue.problem, "category": match.category,
                                                 "location": match.location})
            return match

        logger.info("No match", extra={"problem": issue.problem, "keywords": issue.keywords})
        return None

    def match(self, issues: Sequence[Issue]) -> List[Match]:
        """
        Resolve all issues to at most one clip.

        Returns:
            ``[]`` when nothing resolved, otherwise exactly one Match whose
            ``covered_issues`` lists every issue that resolved to its clip

        Raises:
            SingleFocusViolation: if issues resolve to different clips
        """
        resolved = [m for m in (self.resolve(issue) for issue in issues) if m is not None]
        if not resolved:
            return []

        locations = {m.location for m in resolved}
        if len(locations) > 1:
            logger.warning("Issues resolved to multiple clips", extra={"locations": sorted(locations)})
            raise SingleFocusViolation(locations)

        representative = resolved[0]
        representative.covered_issues = [m.issue for m in resolved]
        return [representative]
