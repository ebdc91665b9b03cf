"""Analysis configuration: tunable thresholds for the three keyword selections.

The configuration is an immutable value.  ``update`` returns a new object and
``diff`` reports which ``section.field`` keys differ from the defaults; the
selection algorithms never look at that diff, it only feeds UI annotations.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Union

from keyword_dashboard.exceptions import ConfigError

Number = Union[int, float]


@dataclass(frozen=True)
class TopKeywordsConfig:
    """High-volume keywords: everything at or above ``min_searches``."""
    count: int = 10
    min_searches: int = 1000


@dataclass(frozen=True)
class NicheKeywordsConfig:
    """Moderate-volume keywords under a competition ceiling."""
    count: int = 10
    min_searches: int = 10
    max_searches: int = 500
    max_competition: Number = 50


@dataclass(frozen=True)
class LowBidKeywordsConfig:
    """Keywords cheaper than a bid percentile but busier than a search percentile."""
    count: int = 10
    max_bid_percentile: int = 50
    min_search_percentile: int = 50


@dataclass(frozen=True)
class AnalysisConfig:
    """Three-section analysis configuration."""

    top_keywords: TopKeywordsConfig = field(default_factory=TopKeywordsConfig)
    niche_keywords: NicheKeywordsConfig = field(default_factory=NicheKeywordsConfig)
    low_bid_keywords: LowBidKeywordsConfig = field(default_factory=LowBidKeywordsConfig)

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    def update(self, section: str, field_name: str, value: Number) -> "AnalysisConfig":
        """Return a new config with ``section.field_name`` set to ``value``.

        No range checks happen here: negative counts or percentiles above
        100 are accepted and simply shrink the selections downstream.

        Raises:
            ConfigError: if the section or field does not exist.
        """
        current = self._section(section)
        if field_name not in {f.name for f in fields(current)}:
            raise ConfigError(section, field_name)
        new_section = replace(current, **{field_name: value})
        return replace(self, **{section: new_section})

    def get(self, key: str) -> Number:
        """Look up a value by its ``section.field`` key."""
        section, _, field_name = key.partition(".")
        current = self._section(section)
        if not hasattr(current, field_name):
            raise ConfigError(section, field_name)
        return getattr(current, field_name)

    def _section(self, section: str):
        if section not in SECTIONS:
            raise ConfigError(section)
        return getattr(self, section)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Nested ``{section: {field: value}}`` in declaration order."""
        result: dict[str, dict[str, Any]] = {}
        for section in SECTIONS:
            current = getattr(self, section)
            result[section] = {f.name: getattr(current, f.name) for f in fields(current)}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]]) -> "AnalysisConfig":
        """Build a config from a (possibly partial) nested dict.

        Missing sections and fields keep their defaults.
        """
        config = cls()
        for section, values in (data or {}).items():
            for field_name, value in (values or {}).items():
                config = config.update(section, field_name, value)
        return config


SECTIONS: tuple[str, ...] = tuple(f.name for f in fields(AnalysisConfig))

DEFAULT_CONFIG = AnalysisConfig()

FIELD_KEYS: list[str] = [
    section + "." + name
    for section, values in DEFAULT_CONFIG.to_dict().items()
    for name in values
]


def diff(config: AnalysisConfig, defaults: AnalysisConfig = DEFAULT_CONFIG) -> set[str]:
    """Return the ``section.field`` keys whose values differ from ``defaults``."""
    current = config.to_dict()
    baseline = defaults.to_dict()
    changed: set[str] = set()
    for section, values in current.items():
        for field_name, value in values.items():
            if value != baseline[section][field_name]:
                changed.add(section + "." + field_name)
    return changed
