import logging
import concurrent.futures
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import yfinance as yf

from ..config import QUARTER_PRICE_WINDOW_DAYS
from ..errors import ProviderError, UpstreamUnavailable

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def quarter_label(dt: date) -> str:
    """Calendar quarter label, e.g. 2025-03-31 -> "2025-Q1"."""
    return f"{dt.year}-Q{(dt.month - 1) // 3 + 1}"


def get_quarter_end_price(symbol: str, dt: Optional[date], ticker: Any = None) -> Optional[float]:
    """
    Close of the trading day nearest to `dt`, searched within a
    +/- QUARTER_PRICE_WINDOW_DAYS window. None when there is no data.
    """
    if dt is None:
        return None
    try:
        t = ticker or yf.Ticker(symbol)
        window = timedelta(days=QUARTER_PRICE_WINDOW_DAYS)
        df = t.history(start=dt - window, end=dt + window, interval="1d")
        if df is None or df.empty:
            logger.warning(f"No price history for {symbol} around {dt}")
            return None

        best = None
        best_diff = None
        for ts, row in df.iterrows():
            diff = abs((_to_date(ts) - dt).days)
            if best_diff is None or diff < best_diff:
                best, best_diff = row, diff
        return _to_float(best["Close"]) if best is not None else None
    except Exception as e:
        logger.error(f"Failed to fetch price for {symbol} at {dt}: {e}")
        return None


def _earnings_records(t: Any) -> List[Dict[str, Any]]:
    """(quarter date, epsActual) pairs from yfinance's earnings history frame."""
    df = t.earnings_history
    if df is None or getattr(df, "empty", True):
        return []

    records = []
    for idx, row in df.iterrows():
        quarter = _to_date(row.get("quarter", idx))
        records.append({"quarter": quarter, "eps": _to_float(row.get("epsActual"))})
    return records


def fetch_raw_ticker(symbol: str) -> Dict[str, Any]:
    """
    Build the raw payload for one ticker:
    {symbol, name, sector, price, eps, per, snapshots: [{period, eps, price, per}]}.

    Snapshot prices are quarter-end closes, falling back to the current price.
    Nulls are left in place for the normalizer to deal with.
    """
    try:
        t = yf.Ticker(symbol)
        info = t.info or {}
        price = _to_float(info.get("regularMarketPrice"))
        trailing_eps = _to_float(info.get("trailingEps"))

        snapshots = []
        for rec in _earnings_records(t):
            dt = rec["quarter"]
            q_price = get_quarter_end_price(symbol, dt, ticker=t)
            eps = rec["eps"]
            snapshots.append({
                "period": quarter_label(dt) if dt else None,
                "eps": eps,
                "price": q_price if q_price is not None else price,
                "per": q_price / eps if eps and q_price else None,
            })

        return {
            "symbol": symbol,
            "name": info.get("shortName") or symbol,
            "sector": info.get("sector") or "Unknown",
            "price": price,
            "eps": trailing_eps,
            "per": price / trailing_eps if price and trailing_eps else None,
            "snapshots": snapshots,
        }
    except Exception as e:
        logger.error(f"Failed to fetch quote summary for {symbol}: {e}")
        raise ProviderError(f"Yahoo fetch failed for {symbol}: {e}", {"symbol": symbol})


def fetch_ticker_batch(symbols: Sequence[str], max_workers: int = 4) -> List[Dict[str, Any]]:
    """
    Fetch raw payloads for many symbols in parallel.

    A failing symbol is logged and left out. Only when every symbol fails is
    the batch itself reported as UpstreamUnavailable.
    """
    symbols = list(symbols)
    if not symbols:
        return []

    results: Dict[str, Dict[str, Any]] = {}
    failures: Dict[str, str] = {}

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(fetch_raw_ticker, s): s for s in symbols}
        for fut in concurrent.futures.as_completed(futures):
            symbol = futures[fut]
            try:
                results[symbol] = fut.result()
            except Exception as e:
                logger.warning(f"Skip {symbol}: {e}")
                failures[symbol] = str(e)

    if not results:
        raise UpstreamUnavailable(
            f"All {len(symbols)} provider fetches failed",
            {"failures": failures},
        )

    logger.info(f"Fetched {len(results)}/{len(symbols)} tickers")
    # Input order, so the cached batch is stable across runs
    return [results[s] for s in symbols if s in results]
