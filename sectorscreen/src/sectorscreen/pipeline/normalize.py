import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import MissingFundamentalError, PartialDataError
from ..models.fundamentals import (
    DEFAULT_SECTOR,
    FundamentalsSnapshot,
    Periodicity,
    Sector,
    TickerRow,
)
from ..models.raw import RawSnapshot, RawTickerPayload
from .periods import format_period, parse_period

logger = logging.getLogger(__name__)

_SECTORS_BY_VALUE = {s.value: s for s in Sector}


def _clean_number(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def normalize_sector(raw: Any) -> Sector:
    """Exact match against the sector enumeration, else the default sector."""
    if isinstance(raw, Sector):
        return raw
    sector = _SECTORS_BY_VALUE.get(raw) if isinstance(raw, str) else None
    if sector is None:
        logger.debug(f"Unknown sector {raw!r}, using {DEFAULT_SECTOR.value}")
        return DEFAULT_SECTOR
    return sector


def normalize_snapshot(raw: Any) -> FundamentalsSnapshot:
    """
    Convert one raw period record.
    Raises MissingFundamentalError when the record can't be a comparable point:
    no EPS, no orderable period, or a malformed record.
    """
    try:
        rec = raw if isinstance(raw, RawSnapshot) else RawSnapshot.model_validate(raw)
    except PydanticValidationError as e:
        raise MissingFundamentalError("Malformed period record", {"record": repr(raw), "error": str(e)})

    eps = _clean_number(rec.eps)
    if eps is None:
        raise MissingFundamentalError("Period record has no EPS", {"period": rec.period})

    parsed = parse_period(rec.period)
    if parsed is None:
        raise MissingFundamentalError("Unrecognized period label", {"period": rec.period})

    price = _clean_number(rec.price)
    try:
        return FundamentalsSnapshot(
            period=format_period(*parsed),
            eps=eps,
            price=price if price is not None else 0.0,
            revenue=_clean_number(rec.revenue),
            roe=_clean_number(rec.roe),
            debt_equity=_clean_number(rec.debt_equity),
        )
    except PydanticValidationError as e:
        raise MissingFundamentalError("Invalid period values", {"period": rec.period, "error": str(e)})


def normalize_snapshots(records: Iterable[Any], symbol: str = "?") -> List[FundamentalsSnapshot]:
    """
    Drop unusable records, de-duplicate periods (first record wins) and order
    the result most-recent-first.
    """
    kept: Dict[str, FundamentalsSnapshot] = {}
    for raw in records:
        try:
            snap = normalize_snapshot(raw)
        except MissingFundamentalError as e:
            logger.debug(f"{symbol}: dropping period record ({e.message})")
            continue
        if snap.period in kept:
            logger.debug(f"{symbol}: duplicate period {snap.period}, keeping first")
            continue
        kept[snap.period] = snap

    # Ascending by (year, quarter); quarter 0 sorts ahead of Q1 of that year
    ordered = sorted(kept.values(), key=lambda s: parse_period(s.period))
    ordered.reverse()
    return ordered


def normalize_ticker(raw: Any) -> TickerRow:
    """Normalize one provider payload; raises PartialDataError if unusable."""
    if raw is None:
        raise PartialDataError("Empty ticker payload")
    try:
        payload = raw if isinstance(raw, RawTickerPayload) else RawTickerPayload.model_validate(raw)
    except PydanticValidationError as e:
        symbol = raw.get("symbol") if isinstance(raw, dict) else None
        raise PartialDataError("Malformed ticker payload", {"symbol": symbol, "error": str(e)})

    symbol = payload.symbol.strip()
    if not symbol:
        raise PartialDataError("Ticker payload has no symbol")

    try:
        return TickerRow(
            symbol=symbol,
            name=payload.name or symbol,
            sector=normalize_sector(payload.sector),
            # Provider data is quarterly; annual rows only come from seed data
            periodicity=Periodicity.QUARTERLY,
            snapshots=tuple(normalize_snapshots(payload.snapshots, symbol)),
        )
    except PydanticValidationError as e:
        raise PartialDataError("Ticker row failed validation", {"symbol": symbol, "error": str(e)})


def normalize(raw: Any) -> List[TickerRow]:
    """
    Normalize a batch of provider payloads.
    Never raises on bad input: malformed tickers are logged and omitted.
    """
    if not raw:
        return []
    if not isinstance(raw, (list, tuple)):
        raw = [raw]

    rows: List[TickerRow] = []
    for item in raw:
        try:
            rows.append(normalize_ticker(item))
        except PartialDataError as e:
            logger.warning(f"Skipping ticker: {e.message} {e.details}")
    return rows
