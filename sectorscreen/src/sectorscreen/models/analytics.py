from typing import List, Optional
from pydantic import BaseModel, Field

from .fundamentals import FundamentalsSnapshot, TickerRow


class SectorAggregate(BaseModel):
    """PER statistics over the latest snapshot of every row in a sector."""
    sector: str
    avg_per: Optional[float] = Field(None, alias="avgPER")
    low_per: Optional[float] = Field(None, alias="lowPER")
    high_per: Optional[float] = Field(None, alias="highPER")
    count: int = 0

    class Config:
        populate_by_name = True
        frozen = True


class SectorMomentum(BaseModel):
    sector: str
    avg_rise: float = Field(0.0, alias="avgRise")

    class Config:
        populate_by_name = True
        frozen = True


class RankedTicker(BaseModel):
    """Percent price change between the two most recent snapshots."""
    symbol: str
    name: str
    sector: str
    rise: float = 0.0
    latest: Optional[FundamentalsSnapshot] = None
    prev: Optional[FundamentalsSnapshot] = None

    class Config:
        populate_by_name = True
        frozen = True


class RiseContext(BaseModel):
    """Three-point view around the most recent rise: before it, its start, now."""
    symbol: str
    start_index: int
    before_start: FundamentalsSnapshot
    start: FundamentalsSnapshot
    latest: FundamentalsSnapshot

    class Config:
        populate_by_name = True
        frozen = True


class ScreenerView(BaseModel):
    """Everything the dashboard renders for one query."""
    rows: List[TickerRow] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0
    sectors: List[SectorAggregate] = Field(default_factory=list)
    rising_sectors: List[SectorMomentum] = Field(default_factory=list)
    rising_tickers: List[RankedTicker] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True
