"""Shared pytest fixtures for the Keyword Analysis Dashboard tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'keyword_dashboard' is importable.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


def _tsv(*cells: str) -> str:
    return "\t".join(cells)


HEADER = _tsv(
    "Keyword",
    "Currency",
    "Avg. monthly searches",
    "Competition",
    "Competition (indexed value)",
    "Top of page bid (low range)",
    "Top of page bid (high range)",
)

SAMPLE_EXPORT = "\n".join([
    "Keyword Stats 2024-05-01 at 10_00_00",
    "1 de abril de 2024 - 31 de março de 2025",
    "",
    HEADER,
    _tsv("comprar celular", "BRL", "12.100", "Alta", "85", "0,95", "3,10"),
    _tsv("melhor celular custo benefício", "BRL", "8,100", "Alta", "72", "0,80", "2,45"),
    _tsv("como limpar tela do celular", "BRL", "880", "Baixa", "12", "0,10", "0,45"),
    _tsv("login samsung account", "BRL", "390", "Baixa", "5", "", ""),
    "   ",
    _tsv("capa celular", "BRL", "2400", "Média", "48", "0,50", "1,20"),
    _tsv("", "BRL", "500", "Baixa", "10", "0,10", "0,20"),
    _tsv("celular dobravel", "BRL", "--", "", "", "", ""),
    _tsv("fone bluetooth", "BRL", "1.000", "Média", "30", "0,40"),
    "",
])


@pytest.fixture()
def sample_export() -> str:
    """A keyword-planner export with a two-line preamble and messy rows.

    Seven rows survive parsing; the row without a keyword is rejected.
    """
    return SAMPLE_EXPORT


@pytest.fixture()
def make_record():
    """Factory for KeywordRecord instances with sensible defaults."""
    from keyword_dashboard.models.keyword import KeywordRecord

    def _make(keyword="kw", searches=0, competition=0.0, bid_low=0.0, bid_high=0.0, intention=None):
        return KeywordRecord(
            keyword=keyword,
            avg_monthly_searches=searches,
            competition=competition,
            top_page_bid_low=bid_low,
            top_page_bid_high=bid_high,
            intention=intention,
        )

    return _make


@pytest.fixture()
def parser():
    from keyword_dashboard.modules.keyword_research import KeywordParser
    return KeywordParser()


@pytest.fixture()
def classifier():
    from keyword_dashboard.modules.keyword_research import IntentClassifier
    return IntentClassifier()


@pytest.fixture()
def analyzer():
    from keyword_dashboard.modules.keyword_research import KeywordAnalyzer
    return KeywordAnalyzer()


@pytest.fixture()
def export_file(tmp_path, sample_export):
    """The sample export written to disk as UTF-8."""
    path = tmp_path / "keyword_stats.csv"
    path.write_text(sample_export, encoding="utf-8")
    return path
