from sectorscreen.models.fundamentals import FundamentalsSnapshot, Periodicity, TickerRow
from sectorscreen.pipeline.per import enrich_with_per

_PERIODS = ["2025-Q2", "2025-Q1", "2024-Q4", "2024-Q3", "2024-Q2", "2024-Q1"]


def make_row(symbol, prices, eps=None, sector="Technology", name=None,
             periodicity=Periodicity.QUARTERLY, enrich=True):
    """Row with most-recent-first prices; eps defaults to 1.0 per period."""
    eps = eps if eps is not None else [1.0] * len(prices)
    snaps = tuple(
        FundamentalsSnapshot(period=_PERIODS[i], eps=eps[i], price=prices[i])
        for i in range(len(prices))
    )
    row = TickerRow(
        symbol=symbol,
        name=name or f"{symbol} Inc.",
        sector=sector,
        periodicity=periodicity,
        snapshots=snaps,
    )
    return enrich_with_per([row])[0] if enrich else row
