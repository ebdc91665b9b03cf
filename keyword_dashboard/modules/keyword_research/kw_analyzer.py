"""Keyword analyzer -- top, niche and low-bid selections, summary statistics and CSV export."""

import csv
import io
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from keyword_dashboard.models.config import (
    AnalysisConfig,
    DEFAULT_CONFIG,
    LowBidKeywordsConfig,
    NicheKeywordsConfig,
    TopKeywordsConfig,
)
from keyword_dashboard.models.keyword import RECORD_FIELDS, KeywordRecord
from keyword_dashboard.modules.keyword_research.intent import IntentClassifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """The three selections plus the classified base set they came from."""
    top: list[KeywordRecord] = field(default_factory=list)
    niche: list[KeywordRecord] = field(default_factory=list)
    low_bid: list[KeywordRecord] = field(default_factory=list)
    all_valid: list[KeywordRecord] = field(default_factory=list)
    search_threshold: float = 0
    bid_threshold: float = math.inf

    def as_tables(self) -> dict[str, list[KeywordRecord]]:
        """Selections keyed by the name used for display and export."""
        return {"top": self.top, "niche": self.niche, "lowBid": self.low_bid}


def _by_searches(record: KeywordRecord) -> int:
    return record.avg_monthly_searches


def _by_bid_high(record: KeywordRecord) -> float:
    return record.top_page_bid_high


def percentile_threshold(
    records: Sequence[KeywordRecord],
    key: Callable[[KeywordRecord], float],
    percentile: float,
    empty_value: float,
) -> float:
    """Value of ``key`` at the given percentile rank of ``records``.

    The rank is ``floor(N * percentile / 100)`` clamped to ``[0, N - 1]`` over
    an ascending copy.  No interpolation: the value of an actual record is
    returned, or ``empty_value`` when there are no records.
    """
    n = len(records)
    if n == 0:
        return empty_value
    ordered = sorted(records, key=key)
    index = math.floor(n * percentile / 100)
    index = max(0, min(index, n - 1))
    return key(ordered[index])


class KeywordAnalyzer:
    """Select top, niche and low-bid keywords from a parsed export.

    Each selection sorts its own copy of the base records, so computing one
    never reorders or consumes what another needs.  Sorting is stable:
    keywords with equal search volume keep their input order.

    Usage::

        analyzer = KeywordAnalyzer()
        result = analyzer.select(records, config)
        csv_bytes = analyzer.keywords_to_csv_bytes(result.top)
    """

    def __init__(self, classifier: IntentClassifier | None = None):
        self._classifier = classifier

    # ------------------------------------------------------------------
    # select_top
    # ------------------------------------------------------------------

    @staticmethod
    def select_top(records: Sequence[KeywordRecord], settings: TopKeywordsConfig) -> list[KeywordRecord]:
        """Highest-volume keywords with at least ``min_searches`` searches."""
        eligible = [r for r in records if r.avg_monthly_searches >= settings.min_searches]
        eligible.sort(key=_by_searches, reverse=True)
        return eligible[:max(int(settings.count), 0)]

    # ------------------------------------------------------------------
    # select_niche
    # ------------------------------------------------------------------

    @staticmethod
    def select_niche(records: Sequence[KeywordRecord], settings: NicheKeywordsConfig) -> list[KeywordRecord]:
        """Keywords inside the search band and at or under the competition cap."""
        eligible = [
            r for r in records
            if settings.min_searches <= r.avg_monthly_searches <= settings.max_searches
            and r.competition <= settings.max_competition
        ]
        eligible.sort(key=_by_searches, reverse=True)
        return eligible[:max(int(settings.count), 0)]

    # ------------------------------------------------------------------
    # select_low_bid
    # ------------------------------------------------------------------

    @staticmethod
    def low_bid_thresholds(
        records: Sequence[KeywordRecord], settings: LowBidKeywordsConfig,
    ) -> tuple[float, float]:
        """Return ``(search_threshold, bid_threshold)`` for the low-bid filter.

        An empty record set gives a search threshold of 0 and an unbounded
        bid threshold.
        """
        search_threshold = percentile_threshold(
            records, _by_searches, settings.min_search_percentile, empty_value=0,
        )
        bid_threshold = percentile_threshold(
            records, _by_bid_high, settings.max_bid_percentile, empty_value=math.inf,
        )
        return search_threshold, bid_threshold

    def select_low_bid(self, records: Sequence[KeywordRecord], settings: LowBidKeywordsConfig) -> list[KeywordRecord]:
        """Keywords bid strictly below one percentile and searched strictly above another."""
        search_threshold, bid_threshold = self.low_bid_thresholds(records, settings)
        eligible = [
            r for r in records
            if r.top_page_bid_high < bid_threshold and r.avg_monthly_searches > search_threshold
        ]
        eligible.sort(key=_by_searches, reverse=True)
        logger.debug(
            "Low-bid thresholds: searches > %s, bid high < %s (%d eligible)",
            search_threshold, bid_threshold, len(eligible),
        )
        return eligible[:max(int(settings.count), 0)]

    # ------------------------------------------------------------------
    # select
    # ------------------------------------------------------------------

    def select(
        self,
        records: Sequence[KeywordRecord],
        config: AnalysisConfig = DEFAULT_CONFIG,
    ) -> AnalysisResult:
        """Compute all three selections from one snapshot of records and config.

        When the analyzer holds a classifier, records without an intent are
        classified first and the enriched set is returned as ``all_valid``.
        """
        base = list(records)
        if self._classifier is not None and any(r.intention is None for r in base):
            base = [
                r if r.intention is not None else r.with_intention(self._classifier.classify(r.keyword))
                for r in base
            ]

        search_threshold, bid_threshold = self.low_bid_thresholds(base, config.low_bid_keywords)
        result = AnalysisResult(
            top=self.select_top(base, config.top_keywords),
            niche=self.select_niche(base, config.niche_keywords),
            low_bid=self.select_low_bid(base, config.low_bid_keywords),
            all_valid=base,
            search_threshold=search_threshold,
            bid_threshold=bid_threshold,
        )
        logger.info(
            "Analysis complete: %d top, %d niche, %d low-bid out of %d keywords",
            len(result.top), len(result.niche), len(result.low_bid), len(base),
        )
        return result

    # ------------------------------------------------------------------
    # summarize
    # ------------------------------------------------------------------

    @staticmethod
    def summarize(records: Sequence[KeywordRecord]) -> dict[str, Any]:
        """Headline numbers for a record set."""
        total = len(records)
        volume = sum(r.avg_monthly_searches for r in records)
        avg_competition = sum(r.competition for r in records) / total if total else 0.0
        avg_bid_high = sum(r.top_page_bid_high for r in records) / total if total else 0.0
        return {
            "total_keywords": total,
            "total_monthly_searches": volume,
            "average_competition": round(avg_competition, 2),
            "average_bid_high": round(avg_bid_high, 2),
            "intent_distribution": IntentClassifier.intent_distribution(records),
        }

    # ------------------------------------------------------------------
    # export_to_csv
    # ------------------------------------------------------------------

    @staticmethod
    def _write_csv(records: Sequence[KeywordRecord], fh) -> None:
        writer = csv.DictWriter(fh, fieldnames=RECORD_FIELDS, lineterminator="\n")
        writer.writeheader()
        for record in records:
            writer.writerow(record.to_dict())

    def export_to_csv(self, records: Sequence[KeywordRecord], filepath: str) -> str:
        """Export keyword records to a CSV file.

        Returns the absolute filepath of the created CSV.
        """
        logger.info("Exporting %d keywords to CSV: %s", len(records), filepath)

        # Ensure directory exists
        dirpath = os.path.dirname(filepath)
        if dirpath:
            os.makedirs(dirpath, exist_ok=True)

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            self._write_csv(records, f)

        abs_path = os.path.abspath(filepath)
        logger.info("CSV exported: %s (%d rows)", abs_path, len(records))
        return abs_path

    @classmethod
    def keywords_to_csv_bytes(cls, records: Sequence[KeywordRecord]) -> bytes:
        """Convert keyword records to CSV bytes for Streamlit download buttons."""
        output = io.StringIO()
        cls._write_csv(records, output)
        return output.getvalue().encode("utf-8")
