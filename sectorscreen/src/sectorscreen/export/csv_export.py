import csv
from pathlib import Path
from typing import List

from ..models.analytics import SectorAggregate
from ..models.fundamentals import TickerRow, latest_snapshot

TABLE_HEADERS = ['symbol', 'name', 'sector', 'periodicity', 'period', 'per', 'eps', 'price', 'revenue', 'roe', 'debtEquity']


def export_table_csv(rows: List[TickerRow], path: Path):
    """Export screener rows (latest snapshot per row) to CSV."""
    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=TABLE_HEADERS)
        writer.writeheader()
        for row in rows:
            latest = latest_snapshot(row)
            record = {
                'symbol': row.symbol,
                'name': row.name,
                'sector': row.sector.value,
                'periodicity': row.periodicity.value,
            }
            if latest is not None:
                record.update({
                    'period': latest.period,
                    'per': latest.per,
                    'eps': latest.eps,
                    'price': latest.price,
                    'revenue': latest.revenue,
                    'roe': latest.roe,
                    'debtEquity': latest.debt_equity,
                })
            writer.writerow(record)


def export_sectors_csv(sectors: List[SectorAggregate], path: Path):
    """Export per-sector PER aggregates to CSV."""
    headers = ['sector', 'avgPER', 'lowPER', 'highPER', 'count']

    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=headers)
        writer.writeheader()
        writer.writerows(s.model_dump(by_alias=True) for s in sectors)
