"""
Analyzer output schemas: detected mechanical issues.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssueCategory(str, Enum):
    """Fixed set of categories the analyzer may assign."""

    BRAKES = "Brakes"
    COOLING_SYSTEM = "Cooling System"
    SUSPENSION = "Suspension"
    ENGINE = "Engine"
    EXHAUST = "Exhaust"
    ELECTRICAL = "Electrical"
    BODY = "Body"

    @classmethod
    def parse(cls, value: Any) -> Optional["IssueCategory"]:
        """Case-insensitive lookup; unknown or empty values give None."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return None


class Issue(BaseModel):
    """One detected mechanical problem"""

    problem: str = ""
    category: Optional[IssueCategory] = None
    keywords: List[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Optional[IssueCategory]:
        return IssueCategory.parse(value)

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(k).strip() for k in value if str(k).strip()]

    @property
    def category_name(self) -> Optional[str]:
        return self.category.value if self.category else None


class AnalysisResult(BaseModel):
    """Analyzer verdict for one submission"""

    model_config = ConfigDict(populate_by_name=True)

    issues: List[Issue] = Field(default_factory=list)
    issues_related: bool = Field(default=True, alias="Issues_related")

    @field_validator("issues", mode="before")
    @classmethod
    def _drop_malformed(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [item for item in value if isinstance(item, (dict, Issue))]
        return value

    def issues_payload(self) -> List[dict]:
        """Serializable form persisted on the job record"""
        return [issue.model_dump(mode="json") for issue in self.issues]


__all__ = ["IssueCategory", "Issue", "AnalysisResult"]
