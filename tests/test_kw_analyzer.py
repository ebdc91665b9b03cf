"""Tests for the keyword selection engine and CSV export."""

import csv
import io
import math

import pytest

from keyword_dashboard.models.config import (
    AnalysisConfig,
    DEFAULT_CONFIG,
    LowBidKeywordsConfig,
    NicheKeywordsConfig,
    TopKeywordsConfig,
)
from keyword_dashboard.models.keyword import RECORD_FIELDS, IntentCategory
from keyword_dashboard.modules.keyword_research.kw_analyzer import (
    AnalysisResult,
    KeywordAnalyzer,
    percentile_threshold,
)


@pytest.fixture()
def ladder(make_record):
    """Five records with searches [10, 20, 30, 40, 100] and bids [1, 2, 3, 4, 5]."""
    return [
        make_record("k" + str(i), searches=s, bid_high=b)
        for i, (s, b) in enumerate(zip([10, 20, 30, 40, 100], [1, 2, 3, 4, 5]))
    ]


class TestTopKeywords:

    def test_filters_sorts_and_truncates(self, analyzer, make_record):
        records = [
            make_record("a", searches=500),
            make_record("b", searches=5000),
            make_record("c", searches=1000),
            make_record("d", searches=20000),
        ]
        top = analyzer.select_top(records, TopKeywordsConfig(count=2, min_searches=1000))
        assert [r.keyword for r in top] == ["d", "b"]

    def test_min_searches_is_inclusive(self, analyzer, make_record):
        top = analyzer.select_top([make_record("a", searches=1000)], TopKeywordsConfig(count=5, min_searches=1000))
        assert len(top) == 1

    def test_ties_keep_input_order(self, analyzer, make_record):
        records = [make_record(k, searches=100) for k in ("first", "second", "third")]
        top = analyzer.select_top(records, TopKeywordsConfig(count=10, min_searches=0))
        assert [r.keyword for r in top] == ["first", "second", "third"]

    def test_output_is_non_increasing(self, analyzer, make_record):
        records = [make_record(str(s), searches=s) for s in (3, 90, 7, 90, 1, 55)]
        top = analyzer.select_top(records, TopKeywordsConfig(count=10, min_searches=0))
        volumes = [r.avg_monthly_searches for r in top]
        assert volumes == sorted(volumes, reverse=True)

    def test_count_larger_than_population(self, analyzer, make_record):
        records = [make_record("a", searches=2000)]
        assert len(analyzer.select_top(records, TopKeywordsConfig(count=50, min_searches=0))) == 1

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_count_gives_empty(self, analyzer, make_record, count):
        records = [make_record("a", searches=2000), make_record("b", searches=3000)]
        assert analyzer.select_top(records, TopKeywordsConfig(count=count, min_searches=0)) == []


class TestNicheKeywords:

    def test_band_and_competition_filter(self, analyzer, make_record):
        records = [
            make_record("too-small", searches=5, competition=1),
            make_record("edge-low", searches=10, competition=50),
            make_record("good", searches=300, competition=20),
            make_record("edge-high", searches=500, competition=0),
            make_record("too-big", searches=501, competition=0),
            make_record("crowded", searches=200, competition=50.5),
        ]
        settings = NicheKeywordsConfig(count=10, min_searches=10, max_searches=500, max_competition=50)
        niche = analyzer.select_niche(records, settings)
        assert [r.keyword for r in niche] == ["edge-high", "good", "edge-low"]
        for r in niche:
            assert settings.min_searches <= r.avg_monthly_searches <= settings.max_searches
            assert r.competition <= settings.max_competition

    def test_count_truncates_after_sort(self, analyzer, make_record):
        records = [make_record(str(s), searches=s) for s in (20, 400, 100)]
        niche = analyzer.select_niche(records, NicheKeywordsConfig(count=2))
        assert [r.avg_monthly_searches for r in niche] == [400, 100]

    def test_inverted_band_is_empty(self, analyzer, make_record):
        records = [make_record("a", searches=100)]
        assert analyzer.select_niche(records, NicheKeywordsConfig(min_searches=500, max_searches=10)) == []


class TestLowBidKeywords:

    def test_percentile_scenario(self, analyzer, ladder):
        settings = LowBidKeywordsConfig(count=10, max_bid_percentile=50, min_search_percentile=50)
        search_threshold, bid_threshold = analyzer.low_bid_thresholds(ladder, settings)
        assert search_threshold == 30
        assert bid_threshold == 3
        assert analyzer.select_low_bid(ladder, settings) == []

    def test_strictness_is_asymmetric(self, analyzer, make_record):
        # Threshold values themselves never qualify: bid must be strictly
        # below its cut and searches strictly above theirs.
        records = [
            make_record("at-both-cuts", searches=30, bid_high=3),
            make_record("cheap", searches=31, bid_high=2.99),
            make_record("at-bid-cut", searches=1000, bid_high=3),
            make_record("at-search-cut", searches=30, bid_high=0.5),
            make_record("filler-low", searches=10, bid_high=4),
            make_record("filler-high", searches=20, bid_high=5),
        ]
        # N=6, 50th percentile -> index 3: searches asc [10,20,30,30,31,1000] -> 30,
        # bids asc [0.5,2.99,3,3,4,5] -> 3.
        settings = LowBidKeywordsConfig(count=10, max_bid_percentile=50, min_search_percentile=50)
        assert analyzer.low_bid_thresholds(records, settings) == (30, 3)
        assert [r.keyword for r in analyzer.select_low_bid(records, settings)] == ["cheap"]

    def test_wider_percentiles_select_and_sort(self, analyzer, ladder):
        # searches index floor(5*0.2)=1 -> 20; bid index floor(5*1.0)=5 clamped to 4 -> 5.
        settings = LowBidKeywordsConfig(count=10, max_bid_percentile=100, min_search_percentile=20)
        assert analyzer.low_bid_thresholds(ladder, settings) == (20, 5)
        low_bid = analyzer.select_low_bid(ladder, settings)
        assert [r.avg_monthly_searches for r in low_bid] == [40, 30]

    def test_zero_percentiles_use_smallest_values(self, analyzer, ladder):
        settings = LowBidKeywordsConfig(count=10, max_bid_percentile=0, min_search_percentile=0)
        assert analyzer.low_bid_thresholds(ladder, settings) == (10, 1)
        assert analyzer.select_low_bid(ladder, settings) == []

    def test_out_of_range_percentiles_are_clamped(self, analyzer, ladder):
        settings = LowBidKeywordsConfig(count=10, max_bid_percentile=250, min_search_percentile=-40)
        assert analyzer.low_bid_thresholds(ladder, settings) == (10, 5)

    def test_empty_set_thresholds(self, analyzer):
        search_threshold, bid_threshold = analyzer.low_bid_thresholds([], LowBidKeywordsConfig())
        assert search_threshold == 0
        assert math.isinf(bid_threshold)

    def test_thresholds_do_not_reorder_input(self, analyzer, make_record):
        records = [make_record("b", searches=9, bid_high=9), make_record("a", searches=1, bid_high=1)]
        analyzer.low_bid_thresholds(records, LowBidKeywordsConfig())
        assert [r.keyword for r in records] == ["b", "a"]

    def test_percentile_threshold_function(self, make_record):
        records = [make_record(searches=s) for s in (50, 10, 40, 20, 30)]
        key = lambda r: r.avg_monthly_searches  # noqa: E731
        assert percentile_threshold(records, key, 50, empty_value=0) == 30
        assert percentile_threshold(records, key, 99, empty_value=0) == 50
        assert percentile_threshold([], key, 50, empty_value=-1) == -1


class TestSelect:

    def test_empty_input_gives_three_empty_lists(self, analyzer):
        result = analyzer.select([], DEFAULT_CONFIG)
        assert isinstance(result, AnalysisResult)
        assert (result.top, result.niche, result.low_bid, result.all_valid) == ([], [], [], [])

    def test_size_bounds_hold(self, analyzer, make_record):
        records = [make_record(str(i), searches=i * 37 % 2000, competition=i % 90, bid_high=i % 7) for i in range(200)]
        config = AnalysisConfig(
            top_keywords=TopKeywordsConfig(count=5, min_searches=0),
            niche_keywords=NicheKeywordsConfig(count=3, min_searches=0, max_searches=2000, max_competition=100),
            low_bid_keywords=LowBidKeywordsConfig(count=4, max_bid_percentile=90, min_search_percentile=10),
        )
        result = analyzer.select(records, config)
        assert len(result.top) == 5
        assert len(result.niche) == 3
        assert len(result.low_bid) == 4

    def test_fractional_counts_are_truncated(self, analyzer, ladder):
        config = (
            DEFAULT_CONFIG
            .update("top_keywords", "count", 2.5)
            .update("top_keywords", "min_searches", 0)
            .update("niche_keywords", "count", 1.9)
            .update("low_bid_keywords", "count", 1.2)
            .update("low_bid_keywords", "max_bid_percentile", 100)
            .update("low_bid_keywords", "min_search_percentile", 0)
        )
        result = analyzer.select(ladder, config)
        assert [r.avg_monthly_searches for r in result.top] == [100, 40]
        assert [r.avg_monthly_searches for r in result.niche] == [100]
        assert [r.avg_monthly_searches for r in result.low_bid] == [40]

    def test_fractional_count_below_one_gives_empty(self, analyzer, ladder):
        settings = TopKeywordsConfig(count=0.5, min_searches=0)
        assert analyzer.select_top(ladder, settings) == []

    def test_base_records_are_not_mutated(self, analyzer, make_record):
        records = [make_record(str(s), searches=s, bid_high=s / 10) for s in (5, 800, 20, 3000)]
        snapshot = list(records)
        analyzer.select(records, DEFAULT_CONFIG)
        assert records == snapshot

    def test_sample_export_with_defaults(self, parser, classifier, sample_export):
        records = classifier.classify_records(parser.parse_records(sample_export))
        result = KeywordAnalyzer().select(records, DEFAULT_CONFIG)
        assert [r.keyword for r in result.top] == [
            "comprar celular", "melhor celular custo benefício", "capa celular", "fone bluetooth",
        ]
        assert [r.keyword for r in result.niche] == ["login samsung account"]
        assert result.search_threshold == 1000
        assert result.bid_threshold == pytest.approx(0.45)
        assert result.low_bid == []
        assert result.all_valid == records

    def test_classifier_fills_missing_intents(self, classifier, make_record):
        analyzer = KeywordAnalyzer(classifier=classifier)
        result = analyzer.select([make_record("comprar tv", searches=5000)], DEFAULT_CONFIG)
        assert result.all_valid[0].intention == IntentCategory.TRANSACTIONAL
        assert result.top[0].intention == IntentCategory.TRANSACTIONAL

    def test_as_tables_names(self, analyzer):
        assert list(analyzer.select([]).as_tables()) == ["top", "niche", "lowBid"]


class TestSummarize:

    def test_summary_numbers(self, classifier, make_record):
        records = classifier.classify_records([
            make_record("comprar tv", searches=100, competition=10, bid_high=1.0),
            make_record("login tv", searches=300, competition=30, bid_high=2.0),
        ])
        summary = KeywordAnalyzer.summarize(records)
        assert summary["total_keywords"] == 2
        assert summary["total_monthly_searches"] == 400
        assert summary["average_competition"] == 20.0
        assert summary["average_bid_high"] == 1.5
        assert summary["intent_distribution"]["Navigational"] == 1

    def test_empty_summary(self):
        summary = KeywordAnalyzer.summarize([])
        assert summary["total_keywords"] == 0
        assert summary["average_competition"] == 0.0


class TestCsvExport:

    def test_header_is_field_names_in_order(self, make_record):
        data = KeywordAnalyzer.keywords_to_csv_bytes([make_record("a", searches=1)]).decode("utf-8")
        assert data.splitlines()[0] == ",".join(RECORD_FIELDS)
        assert RECORD_FIELDS == [
            "keyword", "avg_monthly_searches", "competition",
            "top_page_bid_low", "top_page_bid_high", "intention",
        ]

    def test_rows_follow_records(self, make_record):
        records = [
            make_record("comprar tv", 1200, 45.0, 0.5, 1.25, IntentCategory.TRANSACTIONAL),
            make_record("login tv", 90, 3.0, 0.0, 0.0, IntentCategory.NAVIGATIONAL),
        ]
        data = KeywordAnalyzer.keywords_to_csv_bytes(records).decode("utf-8")
        lines = data.splitlines()
        assert lines[1] == "comprar tv,1200,45.0,0.5,1.25,Transactional"
        assert lines[2] == "login tv,90,3.0,0.0,0.0,Navigational"

    def test_embedded_commas_are_quoted(self, make_record):
        data = KeywordAnalyzer.keywords_to_csv_bytes([make_record("tv, 50 polegadas", 10)]).decode("utf-8")
        rows = list(csv.reader(io.StringIO(data)))
        assert rows[1][0] == "tv, 50 polegadas"

    def test_empty_export_has_header_only(self):
        data = KeywordAnalyzer.keywords_to_csv_bytes([]).decode("utf-8")
        assert data.splitlines() == [",".join(RECORD_FIELDS)]

    def test_export_to_csv_file(self, analyzer, make_record, tmp_path):
        target = tmp_path / "exports" / "top_keywords.csv"
        path = analyzer.export_to_csv([make_record("a", 5)], str(target))
        assert path == str(target.resolve())
        with open(path, encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert rows[0]["keyword"] == "a"
        assert rows[0]["avg_monthly_searches"] == "5"
        assert rows[0]["intention"] == ""
