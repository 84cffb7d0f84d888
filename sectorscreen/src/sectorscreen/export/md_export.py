from pathlib import Path
from typing import Any, List, Optional

from ..models.analytics import ScreenerView
from ..models.fundamentals import latest_snapshot


def _fmt(value: Optional[Any]) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _pct(value: float) -> str:
    return f"{value * 100:+.1f}%"


def export_view_md(view: ScreenerView, path: Path, title: str = "Sector Screener"):
    """Export a screener view to Markdown."""
    lines: List[str] = []
    lines.append(f"# {title}")
    lines.append("")
    lines.append(f"**Rows**: {view.total} | **Page**: {view.page}/{max(view.total_pages, 1)}")
    lines.append("")

    lines.append("## Sector PER")
    lines.append("| Sector | Avg PER | Low | High | Count |")
    lines.append("|---|---|---|---|---|")
    for s in view.sectors:
        lines.append(f"| {s.sector} | {_fmt(s.avg_per)} | {_fmt(s.low_per)} | {_fmt(s.high_per)} | {s.count} |")
    lines.append("")

    lines.append("## Rising Sectors")
    for i, m in enumerate(view.rising_sectors, 1):
        lines.append(f"{i}. {m.sector}: {_pct(m.avg_rise)}")
    lines.append("")

    lines.append("## Rising Tickers")
    for i, t in enumerate(view.rising_tickers, 1):
        lines.append(f"{i}. **{t.symbol}** ({t.name}, {t.sector}): {_pct(t.rise)}")
    lines.append("")

    lines.append("## Table")
    lines.append("| Symbol | Name | Sector | Period | PER | EPS | Price |")
    lines.append("|---|---|---|---|---|---|---|")
    for row in view.rows:
        latest = latest_snapshot(row)
        if latest is None:
            lines.append(f"| {row.symbol} | {row.name} | {row.sector.value} | - | - | - | - |")
            continue
        lines.append(
            f"| {row.symbol} | {row.name} | {row.sector.value} | {latest.period} | "
            f"{_fmt(latest.per)} | {_fmt(latest.eps)} | {_fmt(latest.price)} |"
        )

    with open(path, 'w') as f:
        f.write("\n".join(lines))
