"""Content matching - issues to educational clips."""

from .matcher import ContentMatcher, category_slug

__all__ = ["ContentMatcher", "category_slug"]
