"""
Educational library references, matches and restitch blueprints.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .issues import Issue


@dataclass
class ClipReference:
    """A catalog entry describing an educational clip"""
    id: Optional[str]
    title: str
    location: str
    keywords: List[str] = field(default_factory=list)
    category: Optional[str] = None
    is_active: bool = True


@dataclass
class Match:
    """An issue resolved to a clip.

    ``covered_issues`` lists every issue that resolved to the same clip once
    duplicates are collapsed; the first one is ``issue``.
    """
    issue: Issue
    clip_id: Optional[str]
    location: str
    title: str
    category: Optional[str] = None
    fallback: bool = False
    covered_issues: List[Issue] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        # Fallback clips are titled after their category
        return self.fallback or (self.category is not None and self.title == self.category)


@dataclass
class BlueprintEntry:
    """A recorded clip selection; a user override wins over the AI choice"""
    problem: str
    keywords: List[str]
    ai_clip_id: Optional[str]
    ai_location: Optional[str]
    override_clip_id: Optional[str] = None
    override_location: Optional[str] = None

    @property
    def location(self) -> Optional[str]:
        return self.override_location or self.ai_location


__all__ = ["ClipReference", "Match", "BlueprintEntry"]
