"""Advisory checks for analysis settings.

The configuration layer accepts any number; these helpers only tell the
user when a value will make a selection empty or meaningless.
"""

from keyword_dashboard.models.config import AnalysisConfig


def validate_percentile(value: float, label: str = "Percentile") -> tuple[bool, str]:
    """Validate a percentile value.

    Args:
        value: The percentile to check.
        label: Human-readable field name used in the message.

    Returns:
        Tuple of (is_valid, error_message).  error_message is empty on success.
    """
    if value < 0 or value > 100:
        return False, f"{label} {value} is outside 0-100 and will be clamped to the nearest rank."
    return True, ""


def validate_count(value: int, label: str = "Count") -> tuple[bool, str]:
    """Validate a selection size.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if value <= 0:
        return False, f"{label} is {value}; the selection will be empty."
    return True, ""


def validate_range(low: float, high: float, label: str = "Range") -> tuple[bool, str]:
    """Validate that ``low`` does not exceed ``high``.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if low > high:
        return False, f"{label} minimum {low} exceeds maximum {high}; no keyword can match."
    return True, ""


def validate_config(config: AnalysisConfig) -> tuple[bool, list[str]]:
    """Run every advisory check over a configuration.

    Args:
        config: The analysis configuration to inspect.

    Returns:
        Tuple of (is_valid, messages).  messages is empty when nothing is off.
    """
    top = config.top_keywords
    niche = config.niche_keywords
    low_bid = config.low_bid_keywords

    checks = [
        validate_count(top.count, "Top keywords count"),
        validate_count(niche.count, "Niche keywords count"),
        validate_count(low_bid.count, "Low bid keywords count"),
        validate_range(niche.min_searches, niche.max_searches, "Niche searches"),
        validate_percentile(low_bid.max_bid_percentile, "Max bid percentile"),
        validate_percentile(low_bid.min_search_percentile, "Min search percentile"),
    ]
    if top.min_searches < 0:
        checks.append((False, f"Top keywords min searches is {top.min_searches}; every keyword will qualify."))

    messages = [msg for ok, msg in checks if not ok]
    return not messages, messages
