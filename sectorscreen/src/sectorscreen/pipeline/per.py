from typing import Iterable, List, Optional

from ..models.fundamentals import FundamentalsSnapshot, TickerRow


def calc_per(eps: float, price: float) -> Optional[float]:
    """Price / EPS, or None when EPS is not positive."""
    if eps <= 0:
        return None
    return price / eps


def enrich_snapshot(snapshot: FundamentalsSnapshot) -> FundamentalsSnapshot:
    return snapshot.model_copy(update={"per": calc_per(snapshot.eps, snapshot.price)})


def enrich_with_per(rows: Iterable[TickerRow]) -> List[TickerRow]:
    """
    Recompute PER on every snapshot, replacing whatever value was there.
    Returns new rows; inputs are left untouched.
    """
    return [
        row.model_copy(update={"snapshots": tuple(enrich_snapshot(s) for s in row.snapshots)})
        for row in rows
    ]
