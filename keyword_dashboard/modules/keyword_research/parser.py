"""Keyword-planner export parser -- tab-separated text into typed keyword records."""

import codecs
import logging
import math
from dataclasses import dataclass, field

from keyword_dashboard.exceptions import HeaderNotFoundError, UnreadableSourceError
from keyword_dashboard.models.keyword import KeywordRecord
from keyword_dashboard.utils.helpers import coerce_decimal, coerce_searches

logger = logging.getLogger(__name__)

KEYWORD_COLUMN = "Keyword"
SEARCHES_COLUMN = "Avg. monthly searches"
COMPETITION_COLUMN = "Competition (indexed value)"
BID_LOW_COLUMN = "Top of page bid (low range)"
BID_HIGH_COLUMN = "Top of page bid (high range)"

# Byte-order marks checked longest first so UTF-32 is not mistaken for UTF-16.
_BOMS = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


@dataclass
class ParseResult:
    """Outcome of parsing one uploaded document."""
    records: list[KeywordRecord]
    header: list[str]
    data_lines: int = 0
    rejected_rows: int = 0
    preamble_lines: int = 0
    columns_missing: list[str] = field(default_factory=list)


class KeywordParser:
    """Parse keyword-planner TSV exports into :class:`KeywordRecord` lists.

    The export usually starts with a report title and a date range before
    the real header row, may use a decimal comma for bids and may group
    thousands with either comma or period.  Everything above the header is
    skipped, numeric cells are coerced to 0 when unreadable and rows without
    a keyword are dropped and counted.

    Usage::

        parser = KeywordParser()
        result = parser.parse(text)
        records = result.records
    """

    def __init__(self, delimiter: str = "\t"):
        self._delimiter = delimiter

    # ------------------------------------------------------------------
    # decode
    # ------------------------------------------------------------------

    @staticmethod
    def decode(raw: bytes, source: str = "") -> str:
        """Decode raw upload bytes to text.

        Keyword Planner writes UTF-16 with a BOM; hand-made files are
        usually UTF-8.  Both are accepted.

        Raises:
            UnreadableSourceError: if the bytes are not valid text.
        """
        if not isinstance(raw, (bytes, bytearray)):
            raise UnreadableSourceError("expected bytes, got " + type(raw).__name__, source)

        for bom, encoding in _BOMS:
            if raw.startswith(bom):
                try:
                    return raw.decode(encoding)
                except UnicodeDecodeError as exc:
                    raise UnreadableSourceError(str(exc), source) from exc

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            # BOM-less UTF-16 still shows NUL bytes between ASCII characters.
            if b"\x00" in raw[:200]:
                try:
                    return raw.decode("utf-16-le")
                except UnicodeDecodeError:
                    pass
            raise UnreadableSourceError(str(exc), source) from exc

    def parse_bytes(self, raw: bytes, source: str = "") -> ParseResult:
        """Decode and parse an uploaded document in one step."""
        return self.parse(self.decode(raw, source))

    # ------------------------------------------------------------------
    # parse
    # ------------------------------------------------------------------

    def parse(self, raw_text: str) -> ParseResult:
        """Parse export text into records, keeping input order.

        Raises:
            HeaderNotFoundError: if no line holds both the keyword and the
                monthly-searches column.
        """
        # Only LF and CRLF end a line; other separators stay inside cells.
        text = raw_text.lstrip("\ufeff")
        lines = [line.rstrip("\r") for line in text.split("\n")]
        lines = [line for line in lines if line.strip()]

        header_index = self._find_header(lines)
        if header_index is None:
            raise HeaderNotFoundError(len(lines))

        header = [cell.strip() for cell in lines[header_index].split(self._delimiter)]
        columns = self._column_positions(header)
        missing = [
            name for name in (COMPETITION_COLUMN, BID_LOW_COLUMN, BID_HIGH_COLUMN)
            if name.lower() not in columns
        ]
        if missing:
            logger.info("Export has no %s column(s); values default to 0", ", ".join(missing))

        data = lines[header_index + 1:]
        records: list[KeywordRecord] = []
        rejected = 0
        for line_no, line in enumerate(data, start=header_index + 2):
            tokens = [token.strip() for token in line.split(self._delimiter)]
            row = self._zip_row(header, tokens)
            record = self._build_record(row, columns)
            if record is None:
                rejected += 1
                logger.debug("Rejected row %d: %r", line_no, line[:80])
                continue
            records.append(record)

        logger.info(
            "Parsed %d keywords from %d data lines (%d rejected, %d preamble lines skipped)",
            len(records), len(data), rejected, header_index,
        )
        return ParseResult(
            records=records,
            header=header,
            data_lines=len(data),
            rejected_rows=rejected,
            preamble_lines=header_index,
            columns_missing=missing,
        )

    def parse_records(self, raw_text: str) -> list[KeywordRecord]:
        """Parse export text and return only the validated records."""
        return self.parse(raw_text).records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find_header(self, lines: list[str]):
        wanted = {KEYWORD_COLUMN.lower(), SEARCHES_COLUMN.lower()}
        for index, line in enumerate(lines):
            cells = {cell.strip().lower() for cell in line.split(self._delimiter)}
            if wanted <= cells:
                return index
        return None

    @staticmethod
    def _column_positions(header: list[str]) -> dict[str, int]:
        positions: dict[str, int] = {}
        for index, name in enumerate(header):
            positions.setdefault(name.lower(), index)
        return positions

    @staticmethod
    def _zip_row(header: list[str], tokens: list[str]) -> list[str]:
        # Short rows are padded; surplus trailing tokens are ignored.
        if len(tokens) < len(header):
            tokens = tokens + [""] * (len(header) - len(tokens))
        return tokens[:len(header)]

    @staticmethod
    def _cell(row: list[str], columns: dict[str, int], name: str) -> str:
        index = columns.get(name.lower())
        if index is None:
            return ""
        return row[index]

    def _build_record(self, row: list[str], columns: dict[str, int]):
        keyword = self._cell(row, columns, KEYWORD_COLUMN)
        searches = coerce_searches(self._cell(row, columns, SEARCHES_COLUMN))
        competition = coerce_decimal(self._cell(row, columns, COMPETITION_COLUMN))

        if not keyword or math.isnan(searches) or math.isnan(competition):
            return None

        return KeywordRecord(
            keyword=keyword,
            avg_monthly_searches=searches,
            competition=competition,
            top_page_bid_low=coerce_decimal(self._cell(row, columns, BID_LOW_COLUMN)),
            top_page_bid_high=coerce_decimal(self._cell(row, columns, BID_HIGH_COLUMN)),
        )
