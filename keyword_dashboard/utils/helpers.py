"""Number coercion and formatting helpers for keyword-planner exports."""

import math
import re
import unicodedata

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_int(text: str | None) -> float | int:
    """Parse the leading integer of a string, ``parseInt``-style.

    Returns ``math.nan`` when no digits lead the string, so callers can
    decide how to treat unparseable cells.

    Examples:
        >>> parse_int("1500")
        1500
        >>> parse_int("1K - 10K")
        1
    """
    if not text:
        return math.nan
    match = _LEADING_INT.match(text)
    if not match:
        return math.nan
    return int(match.group(0))


def parse_float(text: str | None) -> float:
    """Parse the leading decimal number of a string, ``parseFloat``-style.

    Returns ``math.nan`` when the string does not start with a number.
    """
    if not text:
        return math.nan
    match = _LEADING_FLOAT.match(text)
    if not match:
        return math.nan
    return float(match.group(0))


def coerce_searches(cell: str | None) -> int:
    """Monthly-search cell to a non-negative int.

    Comma and period are both treated as thousands separators and removed.
    Unparseable or missing cells become 0.

    Examples:
        >>> coerce_searches("1.000")
        1000
        >>> coerce_searches("12,100")
        12100
        >>> coerce_searches("")
        0
    """
    cleaned = (cell or "").replace(",", "").replace(".", "")
    value = parse_int(cleaned)
    if isinstance(value, float) and math.isnan(value):
        return 0
    return max(0, value)


def coerce_decimal(cell: str | None) -> float:
    """Decimal cell (competition, bids) to float, accepting a decimal comma.

    Unparseable or missing cells become 0.0.

    Examples:
        >>> coerce_decimal("1,25")
        1.25
        >>> coerce_decimal("--")
        0.0
    """
    value = parse_float((cell or "").replace(",", "."))
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def format_number(n: int | float) -> str:
    """Format a number with human-readable suffixes.

    Args:
        n: Numeric value.

    Returns:
        Formatted string (e.g. 1500 -> '1.5K', 2500000 -> '2.5M').

    Examples:
        >>> format_number(1500)
        '1.5K'
        >>> format_number(2500000)
        '2.5M'
        >>> format_number(999)
        '999'
    """
    abs_n = abs(n)
    sign = "-" if n < 0 else ""
    if abs_n >= 1_000_000_000:
        return f"{sign}{abs_n / 1_000_000_000:.1f}B"
    if abs_n >= 1_000_000:
        return f"{sign}{abs_n / 1_000_000:.1f}M"
    if abs_n >= 1_000:
        return f"{sign}{abs_n / 1_000:.1f}K"
    if isinstance(n, float):
        return f"{sign}{abs_n:.1f}"
    return f"{sign}{abs_n}"


def slugify(text: str, separator: str = "_", max_length: int = 75) -> str:
    """Convert a table title to a filename-safe slug.

    Examples:
        >>> slugify("Top Keywords")
        'top_keywords'
        >>> slugify("Low Bid Keywords", separator="-")
        'low-bid-keywords'
    """
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", separator, text)
    text = text.strip(separator)
    if len(text) > max_length:
        text = text[:max_length].rsplit(separator, 1)[0]
    return text
