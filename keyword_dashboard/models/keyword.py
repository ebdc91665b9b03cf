"""Keyword record and search-intent category models."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Optional


class IntentCategory(str, Enum):
    """Coarse buyer-journey stage a keyword is classified into."""

    TRANSACTIONAL = "Transactional"
    COMMERCIAL_INVESTIGATION = "Commercial-Investigation"
    NAVIGATIONAL = "Navigational"
    INFORMATIONAL = "Informational"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class KeywordRecord:
    """One parsed keyword row with search volume, competition and bid range."""

    keyword: str
    avg_monthly_searches: int
    competition: float = 0.0
    top_page_bid_low: float = 0.0
    top_page_bid_high: float = 0.0
    intention: Optional[IntentCategory] = None

    def with_intention(self, intention: IntentCategory) -> "KeywordRecord":
        """Return a copy carrying the given intent; other fields are untouched."""
        return replace(self, intention=intention)

    def to_dict(self) -> dict[str, Any]:
        """Field values in declaration order, intent as its display string."""
        row: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, IntentCategory):
                value = value.value
            elif value is None:
                value = ""
            row[f.name] = value
        return row

    def __repr__(self) -> str:
        return (
            f"<KeywordRecord keyword={self.keyword!r} "
            f"vol={self.avg_monthly_searches} bid_high={self.top_page_bid_high}>"
        )


RECORD_FIELDS: list[str] = [f.name for f in fields(KeywordRecord)]
