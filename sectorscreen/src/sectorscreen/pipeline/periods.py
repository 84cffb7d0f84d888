import re
from typing import Optional, Tuple

_YEAR_RE = re.compile(r"(\d{4})")
_QUARTER_AFTER_Q_RE = re.compile(r"q\s*([1-4])(?!\d)")
_QUARTER_BEFORE_Q_RE = re.compile(r"(?<!\d)([1-4])\s*q")


def parse_period(raw: str) -> Optional[Tuple[int, int]]:
    """
    Parse a reporting-period label into (year, quarter).

    Accepts the shapes the provider and older caches produce:
    "2025-Q2", "2025Q2", "2025 q2", "2025 -2q", "Q2 2025", "2q2025", "2025".
    Quarter 0 means annual (or no quarter found). Returns None when there is
    no four-digit year to order by.
    """
    if raw is None:
        return None
    text = str(raw).strip().lower()
    m = _YEAR_RE.search(text)
    if not m:
        return None
    year = int(m.group(1))
    rest = text[:m.start()] + " " + text[m.end():]

    quarter = 0
    q = _QUARTER_AFTER_Q_RE.search(rest) or _QUARTER_BEFORE_Q_RE.search(rest)
    if q:
        quarter = int(q.group(1))
    return year, quarter


def format_period(year: int, quarter: int) -> str:
    if quarter:
        return f"{year:04d}-Q{quarter}"
    return f"{year:04d}"


def canonical_period(raw: str) -> Optional[str]:
    """Canonical "YYYY-QN" / "YYYY" label, or None if unparseable."""
    parsed = parse_period(raw)
    if parsed is None:
        return None
    return format_period(*parsed)


def period_key(period: str) -> Tuple[int, int]:
    """Chronological sort key; unparseable labels sort first as (0, 0)."""
    return parse_period(period) or (0, 0)
