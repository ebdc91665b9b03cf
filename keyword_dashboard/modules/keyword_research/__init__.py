"""Keyword Research module -- export parsing, intent classification and keyword selection."""

from keyword_dashboard.modules.keyword_research.parser import KeywordParser, ParseResult
from keyword_dashboard.modules.keyword_research.intent import IntentClassifier
from keyword_dashboard.modules.keyword_research.kw_analyzer import AnalysisResult, KeywordAnalyzer

__all__ = ["KeywordParser", "ParseResult", "IntentClassifier", "KeywordAnalyzer", "AnalysisResult"]
