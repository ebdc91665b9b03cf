"""Data models -- keyword records, intent categories and analysis configuration."""

from keyword_dashboard.models.keyword import (
    IntentCategory,
    KeywordRecord,
    RECORD_FIELDS,
)
from keyword_dashboard.models.config import (
    AnalysisConfig,
    TopKeywordsConfig,
    NicheKeywordsConfig,
    LowBidKeywordsConfig,
    DEFAULT_CONFIG,
    FIELD_KEYS,
    SECTIONS,
    diff,
)

__all__ = [
    "IntentCategory",
    "KeywordRecord",
    "RECORD_FIELDS",
    "AnalysisConfig",
    "TopKeywordsConfig",
    "NicheKeywordsConfig",
    "LowBidKeywordsConfig",
    "DEFAULT_CONFIG",
    "FIELD_KEYS",
    "SECTIONS",
    "diff",
]
