"""
Keyword dashboard exceptions.

Exception hierarchy:
    KeywordDashboardError (base)
    ├── ParseError
    │   ├── HeaderNotFoundError
    │   └── UnreadableSourceError
    ├── ConfigError
    ├── RuleTableError
    └── NoDocumentError
"""


class KeywordDashboardError(Exception):
    """
    Base exception for all keyword dashboard errors.

    Callers can catch every project error with a single handler.
    """

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ============================================================================
# Parsing Errors
# ============================================================================

class ParseError(KeywordDashboardError):
    """
    Error while reading an uploaded keyword export.

    Terminal for the upload attempt; the user has to upload again.
    """
    pass


class HeaderNotFoundError(ParseError):
    """
    No line carries both the keyword and monthly-searches columns.
    """

    def __init__(self, lines_scanned: int):
        super().__init__(
            "No header row with 'Keyword' and 'Avg. monthly searches' columns found",
            details={"lines_scanned": lines_scanned},
        )
        self.lines_scanned = lines_scanned


class UnreadableSourceError(ParseError):
    """
    The uploaded source could not be read or decoded as text.
    """

    def __init__(self, reason: str, source: str = ""):
        details = {"reason": reason}
        if source:
            details["source"] = source
        super().__init__("Could not read keyword export as text", details=details)
        self.reason = reason
        self.source = source


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigError(KeywordDashboardError):
    """
    Unknown analysis configuration section or field.
    """

    def __init__(self, section: str, field: str = ""):
        key = f"{section}.{field}" if field else section
        super().__init__(f"Unknown configuration key: {key}", details={"key": key})
        self.section = section
        self.field = field


class RuleTableError(KeywordDashboardError):
    """
    Intent marker table is malformed.
    """
    pass


# ============================================================================
# Session Errors
# ============================================================================

class NoDocumentError(KeywordDashboardError):
    """
    Analysis requested before any keyword export was loaded.
    """

    def __init__(self):
        super().__init__("No keyword export loaded; upload a document first")
