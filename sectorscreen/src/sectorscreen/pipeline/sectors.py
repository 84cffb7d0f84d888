from typing import Dict, Iterable, List

from ..models.analytics import SectorAggregate
from ..models.fundamentals import TickerRow, latest_snapshot


def sector_name(row: TickerRow) -> str:
    return row.sector.value if hasattr(row.sector, "value") else str(row.sector)


def group_by_sector(rows: Iterable[TickerRow]) -> Dict[str, List[TickerRow]]:
    """Group rows by sector name, keeping first-seen sector order."""
    groups: Dict[str, List[TickerRow]] = {}
    for row in rows:
        groups.setdefault(sector_name(row), []).append(row)
    return groups


def aggregate_sector_per(rows: Iterable[TickerRow]) -> List[SectorAggregate]:
    """
    Average / lowest / highest PER per sector from each row's latest snapshot.

    `count` is every row in the sector, including rows without a PER; the PER
    statistics stay None when no row in the sector has one.
    """
    out: List[SectorAggregate] = []
    for sector, members in group_by_sector(rows).items():
        pers = []
        for row in members:
            latest = latest_snapshot(row)
            if latest is not None and latest.per is not None:
                pers.append(latest.per)

        pers.sort()
        out.append(SectorAggregate(
            sector=sector,
            avg_per=sum(pers) / len(pers) if pers else None,
            low_per=pers[0] if pers else None,
            high_per=pers[-1] if pers else None,
            count=len(members),
        ))
    return out


def rows_in_sector(rows: Iterable[TickerRow], sector: str) -> List[TickerRow]:
    """Rows of a single sector, for the sector drill-down table."""
    return [r for r in rows if sector_name(r) == sector]
