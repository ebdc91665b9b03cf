"""Keyword Analysis Dashboard -- parse keyword-planner exports, classify intent, select opportunities."""

__version__ = "1.0.0"
