"""Seed rows for offline use; the only source of annual rows."""
from typing import List

from .models.fundamentals import FundamentalsSnapshot, Periodicity, Sector, TickerRow
from .pipeline.per import enrich_with_per


def _row(symbol, name, sector, periodicity, snapshots) -> TickerRow:
    return TickerRow(
        symbol=symbol,
        name=name,
        sector=sector,
        periodicity=periodicity,
        snapshots=tuple(FundamentalsSnapshot(**s) for s in snapshots),
    )


_Q = Periodicity.QUARTERLY
_A = Periodicity.ANNUAL

SAMPLE_ROWS: List[TickerRow] = [
    _row("AAPL", "Apple Inc.", Sector.TECHNOLOGY, _Q, [
        {"period": "2025-Q2", "eps": 1.40, "price": 225, "revenue": 94.0e9, "roe": 1.47, "debt_equity": 1.54},
        {"period": "2025-Q1", "eps": 1.32, "price": 205, "revenue": 95.4e9, "roe": 1.38, "debt_equity": 1.47},
        {"period": "2024-Q4", "eps": 1.26, "price": 190},
        {"period": "2024-Q3", "eps": 1.20, "price": 180},
    ]),
    _row("MSFT", "Microsoft Corp.", Sector.TECHNOLOGY, _Q, [
        {"period": "2025-Q2", "eps": 3.05, "price": 455},
        {"period": "2025-Q1", "eps": 2.95, "price": 420},
        {"period": "2024-Q4", "eps": 2.85, "price": 410},
        {"period": "2024-Q3", "eps": 2.70, "price": 390},
    ]),
    _row("AMZN", "Amazon.com Inc.", Sector.CONSUMER_CYCLICAL, _Q, [
        {"period": "2025-Q2", "eps": 0.90, "price": 205},
        {"period": "2025-Q1", "eps": 0.84, "price": 190},
        {"period": "2024-Q4", "eps": 0.78, "price": 175},
        {"period": "2024-Q3", "eps": 0.60, "price": 150},
    ]),
    _row("UNH", "UnitedHealth Group", Sector.HEALTHCARE, _Q, [
        {"period": "2025-Q2", "eps": 7.00, "price": 570},
        {"period": "2025-Q1", "eps": 6.60, "price": 540},
        {"period": "2024-Q4", "eps": 6.30, "price": 520},
        {"period": "2024-Q3", "eps": 6.10, "price": 510},
    ]),
    _row("JPM", "JPMorgan Chase & Co.", Sector.FINANCIAL_SERVICES, _Q, [
        {"period": "2025-Q2", "eps": 4.25, "price": 215},
        {"period": "2025-Q1", "eps": 4.10, "price": 200},
        {"period": "2024-Q4", "eps": 3.90, "price": 190},
        {"period": "2024-Q3", "eps": 3.70, "price": 185},
    ]),
    _row("CAT", "Caterpillar Inc.", Sector.INDUSTRIALS, _Q, [
        {"period": "2025-Q2", "eps": 6.00, "price": 345},
        {"period": "2025-Q1", "eps": 5.80, "price": 330},
        {"period": "2024-Q4", "eps": 5.50, "price": 310},
        {"period": "2024-Q3", "eps": 5.10, "price": 290},
    ]),
    _row("AAPL", "Apple Inc.", Sector.TECHNOLOGY, _A, [
        {"period": "2025", "eps": 5.50, "price": 225},
        {"period": "2024", "eps": 5.10, "price": 190},
        {"period": "2023", "eps": 5.00, "price": 180},
    ]),
    _row("MSFT", "Microsoft Corp.", Sector.TECHNOLOGY, _A, [
        {"period": "2025", "eps": 11.80, "price": 455},
        {"period": "2024", "eps": 10.60, "price": 410},
        {"period": "2023", "eps": 9.30, "price": 345},
    ]),
]


def sample_rows() -> List[TickerRow]:
    return enrich_with_per(SAMPLE_ROWS)
