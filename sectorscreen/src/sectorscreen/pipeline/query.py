import logging
import math
from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..config import DEFAULT_ROWS_PER_PAGE
from ..models.analytics import ScreenerView
from ..models.fundamentals import Periodicity, Sector, TickerRow, latest_snapshot, previous_snapshot
from .momentum import rank_rising_sectors, rank_rising_tickers
from .sectors import aggregate_sector_per, sector_name

logger = logging.getLogger(__name__)

SortKey = Literal["symbol", "per", "eps", "price", "rise"]
SortOrder = Literal["asc", "desc"]


class ScreenerQuery(BaseModel):
    """
    Immutable screener state. Build a new one (``query.model_copy(update=...)``)
    to change a filter; rows are never filtered in place.
    """
    periodicity: Periodicity = Periodicity.QUARTERLY
    sector_filter: Union[Literal["all"], Sector] = "all"
    per_max: Optional[float] = None
    eps_min: Optional[float] = None
    search: str = ""
    sort_key: SortKey = "rise"
    sort_order: SortOrder = "desc"
    page: int = Field(1, ge=1)
    rows_per_page: int = Field(DEFAULT_ROWS_PER_PAGE, ge=1)

    class Config:
        frozen = True


def filter_by_periodicity(rows: Iterable[TickerRow], periodicity: Union[Periodicity, str]) -> List[TickerRow]:
    periodicity = Periodicity(periodicity)
    return [r for r in rows if r.periodicity == periodicity]


def apply_screener_filters(
    rows: Iterable[TickerRow],
    sector_filter: Union[Sector, str] = "all",
    per_max: Optional[float] = None,
    eps_min: Optional[float] = None,
) -> List[TickerRow]:
    """
    Sector / max-PER / min-EPS filters over each row's latest snapshot.

    A missing PER counts as infinite, so any per_max excludes it. Rows
    without snapshots have neither PER nor EPS and fail any numeric bound.
    """
    wanted = None if sector_filter == "all" else Sector(sector_filter).value

    out = []
    for row in rows:
        if wanted is not None and sector_name(row) != wanted:
            continue

        latest = latest_snapshot(row)
        if per_max is not None:
            per = latest.per if latest is not None and latest.per is not None else math.inf
            if per > per_max:
                continue
        if eps_min is not None:
            if latest is None or latest.eps < eps_min:
                continue
        out.append(row)
    return out


def _sort_value(row: TickerRow, key: str):
    if key == "symbol":
        return row.symbol
    latest = latest_snapshot(row)
    if latest is None:
        return 0.0
    if key == "per":
        return latest.per if latest.per is not None else 0.0
    if key == "eps":
        return latest.eps
    if key == "price":
        return latest.price
    # "rise" in the table is the absolute price move, not the percentage
    return latest.price - previous_snapshot(row).price


def sort_rows(rows: Iterable[TickerRow], key: str = "rise", order: str = "desc") -> List[TickerRow]:
    if key not in ("symbol", "per", "eps", "price", "rise"):
        raise ValueError(f"Unknown sort key: {key}")
    return sorted(rows, key=lambda r: _sort_value(r, key), reverse=(order == "desc"))


def paginate(rows: List[TickerRow], page: int = 1, rows_per_page: int = DEFAULT_ROWS_PER_PAGE) -> List[TickerRow]:
    start = (page - 1) * rows_per_page
    return rows[start:start + rows_per_page]


def total_pages(count: int, rows_per_page: int) -> int:
    return (count + rows_per_page - 1) // rows_per_page


def run_query(rows: Iterable[TickerRow], query: Optional[ScreenerQuery] = None) -> ScreenerView:
    """
    Filter the canonical row list for one query and derive every view from it.

    The text search narrows only the rising-tickers ranking; the table and
    sector aggregates ignore it.
    """
    query = query or ScreenerQuery()
    base = filter_by_periodicity(rows, query.periodicity)
    filtered = apply_screener_filters(
        base,
        sector_filter=query.sector_filter,
        per_max=query.per_max,
        eps_min=query.eps_min,
    )
    logger.debug(f"Query kept {len(filtered)} of {len(base)} {query.periodicity.value} rows")

    ordered = sort_rows(filtered, query.sort_key, query.sort_order)
    return ScreenerView(
        rows=paginate(ordered, query.page, query.rows_per_page),
        total=len(filtered),
        page=query.page,
        total_pages=total_pages(len(filtered), query.rows_per_page),
        sectors=aggregate_sector_per(filtered),
        rising_sectors=rank_rising_sectors(filtered),
        rising_tickers=rank_rising_tickers(filtered, query.search),
    )
