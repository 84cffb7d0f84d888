from typing import Optional

from ..models.analytics import RiseContext
from ..models.fundamentals import TickerRow


def find_rise_start_index(row: TickerRow) -> int:
    """
    Index of the snapshot just before the most recent price rise.

    Walks the most-recent-first snapshots (so backwards in time) and stops at
    the first i where price[i] > price[i + 1], returning i + 1. Without such a
    step the oldest index is returned, which is -1 for an empty row.

    This is a boundary heuristic, not a trend model: only the latest single
    upward step is considered.
    """
    snaps = row.snapshots
    for i in range(len(snaps) - 1):
        if snaps[i].price > snaps[i + 1].price:
            return i + 1
    return len(snaps) - 1


def rise_context(row: TickerRow) -> Optional[RiseContext]:
    """Before-rise, rise-start and latest snapshots, or None for an empty row."""
    if not row.snapshots:
        return None
    last = len(row.snapshots) - 1
    start = find_rise_start_index(row)
    before = min(start + 1, last)
    return RiseContext(
        symbol=row.symbol,
        start_index=start,
        before_start=row.snapshots[before],
        start=row.snapshots[start],
        latest=row.snapshots[0],
    )
