import hashlib
import logging
from typing import List, Optional, Sequence

from .cache.sqlite import SQLiteCache
from .config import BATCH_TTL_SECONDS, TICKER_TTL_SECONDS, get_max_workers
from .errors import PartialDataError
from .models.fundamentals import TickerRow
from .pipeline.normalize import normalize, normalize_ticker
from .pipeline.per import enrich_with_per
from .providers import yahoo

logger = logging.getLogger(__name__)


def batch_cache_key(symbols: Sequence[str]) -> str:
    digest = hashlib.md5(",".join(symbols).encode("utf-8")).hexdigest()
    return f"screener:batch:{digest}"


def ticker_cache_key(symbol: str) -> str:
    return f"screener:ticker:{symbol.upper()}"


def fetch_batch_rows(
    symbols: Sequence[str],
    cache: Optional[SQLiteCache] = None,
    force: bool = False,
    max_workers: Optional[int] = None,
) -> List[TickerRow]:
    """
    Enriched rows for a batch of symbols, reading through the cache.

    The cache holds raw provider payloads, so normalization and PER derivation
    run on every call. UpstreamUnavailable from the provider propagates.
    """
    symbols = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
    key = batch_cache_key(symbols)

    raw = None
    if cache is not None and not force:
        raw = cache.get_fresh(key, BATCH_TTL_SECONDS)
        if raw is not None:
            logger.info(f"Cache hit: batch of {len(symbols)} tickers")

    if raw is None:
        logger.info(f"Fetching {len(symbols)} tickers (Yahoo)")
        raw = yahoo.fetch_ticker_batch(symbols, max_workers=max_workers or get_max_workers())
        if cache is not None:
            cache.put(key, raw)

    return enrich_with_per(normalize(raw))


def fetch_ticker_row(
    symbol: str,
    cache: Optional[SQLiteCache] = None,
    force: bool = False,
) -> Optional[TickerRow]:
    """Enriched row for one symbol, or None when the payload is unusable."""
    symbol = symbol.strip().upper()
    key = ticker_cache_key(symbol)

    raw = None
    if cache is not None and not force:
        raw = cache.get_fresh(key, TICKER_TTL_SECONDS)
        if raw is not None:
            logger.info(f"Cache hit: {symbol}")

    if raw is None:
        logger.info(f"Fetching {symbol} (Yahoo)")
        raw = yahoo.fetch_raw_ticker(symbol)
        if cache is not None:
            cache.put(key, raw)

    try:
        row = normalize_ticker(raw)
    except PartialDataError as e:
        logger.warning(f"Unusable payload for {symbol}: {e.message}")
        return None
    return enrich_with_per([row])[0]
