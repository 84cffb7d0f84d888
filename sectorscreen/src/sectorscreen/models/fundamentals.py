from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from ..pipeline.periods import period_key


class Sector(str, Enum):
    """
    Yahoo Finance sector classification.
    Order matters: the first member is the fallback for unknown sectors.
    """
    INDUSTRIALS = "Industrials"
    HEALTHCARE = "Healthcare"
    TECHNOLOGY = "Technology"
    UTILITIES = "Utilities"
    FINANCIAL_SERVICES = "Financial Services"
    BASIC_MATERIALS = "Basic Materials"
    CONSUMER_CYCLICAL = "Consumer Cyclical"
    REAL_ESTATE = "Real Estate"
    COMMUNICATION_SERVICES = "Communication Services"
    CONSUMER_DEFENSIVE = "Consumer Defensive"
    ENERGY = "Energy"


DEFAULT_SECTOR = list(Sector)[0]


class Periodicity(str, Enum):
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class FundamentalsSnapshot(BaseModel):
    """
    One reporting period for one ticker.
    `per` is derived from eps/price by the pipeline and never trusted from upstream.
    """
    period: str
    eps: float
    price: float = Field(0.0, ge=0)
    per: Optional[float] = None

    # Supplementary fundamentals; None when the source did not report them
    revenue: Optional[float] = None
    roe: Optional[float] = None
    debt_equity: Optional[float] = Field(None, alias="debtEquity")

    class Config:
        populate_by_name = True
        frozen = True


class TickerRow(BaseModel):
    """
    One instrument at one periodicity.
    `snapshots` is most-recent-first; construction rejects any other order.
    """
    symbol: str
    name: str
    sector: Sector = DEFAULT_SECTOR
    periodicity: Periodicity = Periodicity.QUARTERLY
    snapshots: Tuple[FundamentalsSnapshot, ...] = ()

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("snapshots")
    @classmethod
    def _most_recent_first(cls, value):
        keys = [period_key(s.period) for s in value]
        for newer, older in zip(keys, keys[1:]):
            if newer <= older:
                raise ValueError(
                    "snapshots must be strictly most-recent-first without duplicate periods"
                )
        return value


def latest_snapshot(row: TickerRow) -> Optional[FundamentalsSnapshot]:
    return row.snapshots[0] if row.snapshots else None


def previous_snapshot(row: TickerRow) -> Optional[FundamentalsSnapshot]:
    """Second most recent snapshot, falling back to the latest one."""
    if len(row.snapshots) > 1:
        return row.snapshots[1]
    return latest_snapshot(row)
