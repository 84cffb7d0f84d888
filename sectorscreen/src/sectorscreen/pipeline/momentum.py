from typing import Iterable, List, Optional

from ..models.analytics import RankedTicker, SectorMomentum
from ..models.fundamentals import TickerRow, latest_snapshot, previous_snapshot
from .sectors import sector_name, group_by_sector


def pct_change(current: float, previous: float) -> Optional[float]:
    """Fractional change from previous to current; None when previous is 0."""
    if previous == 0:
        return None
    return (current - previous) / previous


def ticker_rise(row: TickerRow) -> Optional[float]:
    """
    Change between the two most recent prices.
    A single snapshot compares with itself (0.0); no snapshots gives None.
    """
    latest = latest_snapshot(row)
    if latest is None:
        return None
    return pct_change(latest.price, previous_snapshot(row).price)


def rank_rising_sectors(rows: Iterable[TickerRow]) -> List[SectorMomentum]:
    """Average ticker rise per sector, highest first."""
    out = []
    for sector, members in group_by_sector(rows).items():
        changes = [c for c in (ticker_rise(r) for r in members) if c is not None]
        avg = sum(changes) / len(changes) if changes else 0.0
        out.append(SectorMomentum(sector=sector, avg_rise=avg))
    # sorted() is stable, so equal averages keep their grouping order
    return sorted(out, key=lambda m: m.avg_rise, reverse=True)


def matches_search(row: TickerRow, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in row.symbol.lower() or needle in row.name.lower()


def rank_rising_tickers(rows: Iterable[TickerRow], search: Optional[str] = None) -> List[RankedTicker]:
    """
    Per-ticker rise, highest first. `search` narrows by symbol or name,
    case-insensitively.
    """
    ranked = []
    for row in rows:
        if not matches_search(row, search):
            continue
        rise = ticker_rise(row)
        ranked.append(RankedTicker(
            symbol=row.symbol,
            name=row.name,
            sector=sector_name(row),
            rise=rise if rise is not None else 0.0,
            latest=latest_snapshot(row),
            prev=previous_snapshot(row),
        ))
    return sorted(ranked, key=lambda t: t.rise, reverse=True)
