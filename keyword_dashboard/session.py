"""Analysis session connecting upload, classification and keyword selection."""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from keyword_dashboard.exceptions import NoDocumentError, ParseError, UnreadableSourceError
from keyword_dashboard.models.config import AnalysisConfig, DEFAULT_CONFIG, diff
from keyword_dashboard.models.keyword import KeywordRecord

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Hold one uploaded document, the current settings and the latest results.

    The record set is created once per upload and never changed afterwards.
    Settings are replaced field by field.  Every ``analyze`` call recomputes
    all three selections from the current snapshot and swaps the new result
    in with a single assignment, so callers never see a half-updated result.

    Usage::

        session = AnalysisSession()
        await session.load_file("keyword_stats.csv")
        session.update_config("top_keywords", "count", 25)
        result = session.analyze()
    """

    def __init__(self, parser=None, classifier=None, analyzer=None) -> None:
        self._parser = parser
        self._classifier = classifier
        self._analyzer = analyzer
        self._records: Optional[list[KeywordRecord]] = None
        self._parse_result = None
        self._result = None
        self._config: AnalysisConfig = DEFAULT_CONFIG
        self._filename = ""
        self._status: dict[str, Any] = {}
        logger.info("AnalysisSession initialized.")

    # ------------------------------------------------------------------
    # Lazy-loaded module accessors
    # ------------------------------------------------------------------

    def _get_parser(self):
        if self._parser is None:
            from keyword_dashboard.modules.keyword_research import KeywordParser
            self._parser = KeywordParser()
            logger.debug("KeywordParser created.")
        return self._parser

    def _get_classifier(self):
        if self._classifier is None:
            from keyword_dashboard.modules.keyword_research import IntentClassifier
            self._classifier = IntentClassifier()
            logger.debug("IntentClassifier created.")
        return self._classifier

    def _get_analyzer(self):
        if self._analyzer is None:
            from keyword_dashboard.modules.keyword_research import KeywordAnalyzer
            self._analyzer = KeywordAnalyzer()
            logger.debug("KeywordAnalyzer created.")
        return self._analyzer

    # ------------------------------------------------------------------
    # Status helper
    # ------------------------------------------------------------------

    def _log_step(self, step: str, description: str, status: str = "success") -> None:
        """Log and record a session step transition."""
        msg = f"[{step}] {description}: {status}"
        if status == "error":
            logger.error(msg)
        else:
            logger.info(msg)
        self._status[step] = {
            "description": description,
            "status": status,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    def get_status(self) -> dict[str, Any]:
        """Return the last recorded status of each step."""
        return dict(self._status)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def records(self) -> list[KeywordRecord]:
        """Classified records of the loaded document (empty if none)."""
        return list(self._records or [])

    @property
    def has_document(self) -> bool:
        return self._records is not None

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def rejected_rows(self) -> int:
        """Rows dropped while parsing the current document."""
        return self._parse_result.rejected_rows if self._parse_result else 0

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def modified_fields(self) -> set[str]:
        """``section.field`` keys that currently differ from the defaults."""
        return diff(self._config)

    @property
    def result(self):
        """Latest :class:`AnalysisResult`, or ``None`` before the first analyze."""
        return self._result

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_text(self, text: str, filename: str = ""):
        """Parse and classify a document, replacing any previous one.

        A failed parse leaves the session with no document and no results.

        Raises:
            ParseError: if the document has no recognisable header row.
        """
        try:
            parsed = self._get_parser().parse(text)
        except ParseError as exc:
            self._clear_document()
            self._log_step("upload", f"Parsing {filename or 'document'} failed: {exc}", "error")
            raise

        self._records = self._get_classifier().classify_records(parsed.records)
        self._parse_result = parsed
        self._filename = filename
        self._result = None
        self._log_step(
            "upload",
            f"Loaded {len(self._records)} keywords from {filename or 'document'} "
            f"({parsed.rejected_rows} rows rejected)",
        )
        return parsed

    def load_bytes(self, raw: bytes, filename: str = ""):
        """Decode uploaded bytes and load them.

        Raises:
            ParseError: if the bytes are not text or carry no header row.
        """
        try:
            text = self._get_parser().decode(raw, filename)
        except UnreadableSourceError as exc:
            self._clear_document()
            self._log_step("upload", f"Reading {filename or 'document'} failed: {exc}", "error")
            raise
        return self.load_text(text, filename)

    async def load_file(self, path: Union[str, Path]):
        """Read a file without blocking the event loop, then load it.

        Raises:
            UnreadableSourceError: if the file cannot be read.
            HeaderNotFoundError: if it carries no header row.
        """
        file_path = Path(path)
        try:
            raw = await asyncio.to_thread(file_path.read_bytes)
        except OSError as exc:
            self._clear_document()
            self._log_step("upload", f"Reading {file_path.name} failed: {exc}", "error")
            raise UnreadableSourceError(str(exc), str(file_path)) from exc
        return self.load_bytes(raw, file_path.name)

    def _clear_document(self) -> None:
        self._records = None
        self._parse_result = None
        self._result = None
        self._filename = ""

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, section: str, field_name: str, value) -> AnalysisConfig:
        """Set one configuration value and return the new configuration."""
        self._config = self._config.update(section, field_name, value)
        logger.debug("Config %s.%s set to %s", section, field_name, value)
        return self._config

    def reset_config(self) -> AnalysisConfig:
        """Restore every setting to its default."""
        self._config = DEFAULT_CONFIG
        return self._config

    # ------------------------------------------------------------------
    # analyze
    # ------------------------------------------------------------------

    def analyze(self):
        """Recompute all three selections and replace the previous result.

        Raises:
            NoDocumentError: if no document has been loaded.
        """
        if self._records is None:
            raise NoDocumentError()
        result = self._get_analyzer().select(self._records, self._config)
        self._result = result
        self._log_step(
            "analyze",
            f"{len(result.top)} top, {len(result.niche)} niche, {len(result.low_bid)} low-bid keywords",
        )
        return result
