"""Rule-based search-intent classifier.

Intent is decided by a cascading rule table: an ordered list of
``(category, markers)`` pairs checked in sequence.  The first category with a
marker contained in the lower-cased keyword wins, so a keyword such as
"comprar o melhor celular" is Transactional even though it also carries a
commercial-investigation marker.  Keywords that match nothing fall back to
Informational.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

import yaml

from keyword_dashboard.exceptions import RuleTableError
from keyword_dashboard.models.keyword import IntentCategory, KeywordRecord

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "intent_markers.yaml"

PRECEDENCE: tuple[IntentCategory, ...] = (
    IntentCategory.TRANSACTIONAL,
    IntentCategory.COMMERCIAL_INVESTIGATION,
    IntentCategory.NAVIGATIONAL,
    IntentCategory.INFORMATIONAL,
)

FALLBACK_INTENT = IntentCategory.INFORMATIONAL

RuleTable = list[tuple[IntentCategory, tuple[str, ...]]]


def _clean_markers(category: IntentCategory, markers: Iterable[str]) -> tuple[str, ...]:
    """Lower-case markers and drop blank ones; an empty marker would match everything."""
    if isinstance(markers, str):
        raise RuleTableError(
            "Markers for " + category.value + " must be a list, not a string",
            details={"markers": markers},
        )
    return tuple(str(m).lower() for m in markers if str(m).strip())


def load_rules(path: Union[str, Path, None] = None) -> RuleTable:
    """Load the marker table from YAML and return it in precedence order.

    The file holds a ``rules`` list of ``{category, markers}`` mappings.
    Every category must appear exactly once; file order is ignored and the
    fixed precedence is applied.

    Raises:
        RuleTableError: if the file is missing, unparseable, names an
            unknown category or leaves one out.
    """
    rules_path = Path(path) if path else DEFAULT_RULES_PATH
    try:
        with open(rules_path, "r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise RuleTableError(
            "Could not load intent marker table", details={"path": str(rules_path), "error": str(exc)}
        ) from exc

    entries = raw.get("rules") if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        raise RuleTableError("Intent marker table has no 'rules' list", details={"path": str(rules_path)})

    by_category: dict[IntentCategory, tuple[str, ...]] = {}
    for entry in entries:
        name = str((entry or {}).get("category", ""))
        try:
            category = IntentCategory(name)
        except ValueError:
            raise RuleTableError("Unknown intent category: " + name, details={"path": str(rules_path)}) from None
        if category in by_category:
            raise RuleTableError("Duplicate intent category: " + name, details={"path": str(rules_path)})
        by_category[category] = _clean_markers(category, entry.get("markers") or [])

    missing = [c.value for c in PRECEDENCE if c not in by_category]
    if missing:
        raise RuleTableError(
            "Intent marker table is missing categories", details={"missing": missing}
        )

    table = [(category, by_category[category]) for category in PRECEDENCE]
    logger.debug(
        "Loaded intent rules from %s (%d markers)", rules_path, sum(len(m) for _, m in table)
    )
    return table


class IntentClassifier:
    """Assign one of four intent categories to keywords via marker matching.

    Usage::

        classifier = IntentClassifier()
        classifier.classify("comprar o melhor celular")   # Transactional
        enriched = classifier.classify_records(records)
    """

    def __init__(
        self,
        rules: Optional[Sequence[tuple[IntentCategory, Iterable[str]]]] = None,
        rules_path: Union[str, Path, None] = None,
    ):
        if rules is not None:
            # Precedence is fixed regardless of the order rules are given in.
            given = {
                IntentCategory(category): _clean_markers(IntentCategory(category), markers)
                for category, markers in rules
            }
            self._rules: RuleTable = [(c, given[c]) for c in PRECEDENCE if c in given]
        else:
            self._rules = load_rules(rules_path)

    @property
    def rules(self) -> RuleTable:
        """The rule table in the order it is checked."""
        return list(self._rules)

    # ------------------------------------------------------------------
    # classify
    # ------------------------------------------------------------------

    def classify(self, keyword: str) -> IntentCategory:
        """Return the intent of a single keyword string."""
        text = (keyword or "").lower()
        for category, markers in self._rules:
            if any(marker in text for marker in markers):
                return category
        return FALLBACK_INTENT

    def classify_records(self, records: Iterable[KeywordRecord]) -> list[KeywordRecord]:
        """Return copies of ``records`` with ``intention`` filled in."""
        classified = [r.with_intention(self.classify(r.keyword)) for r in records]
        logger.info("Classified intent for %d keywords", len(classified))
        return classified

    # ------------------------------------------------------------------
    # intent_distribution
    # ------------------------------------------------------------------

    @staticmethod
    def intent_distribution(records: Iterable[KeywordRecord]) -> dict[str, int]:
        """Count classified records per category; every category is present."""
        counts = Counter(r.intention for r in records if r.intention is not None)
        return {category.value: counts.get(category, 0) for category in PRECEDENCE}
