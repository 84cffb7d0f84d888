from typing import Any, List, Optional
from pydantic import BaseModel, Field


class RawSnapshot(BaseModel):
    """
    Period record as the provider boundary emits it.
    Every numeric field may be null; `per` is carried but ignored downstream.
    """
    period: Optional[str] = None
    eps: Optional[float] = None
    price: Optional[float] = None
    per: Optional[float] = None
    revenue: Optional[float] = None
    roe: Optional[float] = None
    debt_equity: Optional[float] = Field(None, alias="debtEquity")

    class Config:
        populate_by_name = True
        extra = "ignore"


class RawTickerPayload(BaseModel):
    """Per-ticker payload: metadata, headline quote, raw period records."""
    symbol: str
    name: Optional[str] = None
    sector: Optional[Any] = None
    price: Optional[float] = None
    eps: Optional[float] = None
    per: Optional[float] = None
    # Validated one record at a time so a bad period does not sink the ticker
    snapshots: List[Any] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        extra = "ignore"
