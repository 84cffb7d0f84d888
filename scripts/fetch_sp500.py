#!/usr/bin/env python3
import argparse
import html
import re
import sys
from pathlib import Path
from typing import List

import requests
import yaml

SP500_URL = "https://en.wikipedia.org/wiki/List_of_S%26P_500_companies"
USER_AGENT = "Mozilla/5.0 (sectorscreen universe builder)"

_TABLE_RE = re.compile(r'<table[^>]*id="constituents"[^>]*>(.*?)</table>', re.IGNORECASE | re.DOTALL)
_ROW_RE = re.compile(r"<tr[^>]*>(.*?)</tr>", re.IGNORECASE | re.DOTALL)
_CELL_RE = re.compile(r"<td[^>]*>(.*?)</td>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def parse_constituents(page: str) -> List[str]:
    """Symbols from the first column of the constituents table."""
    m = _TABLE_RE.search(page)
    if not m:
        return []
    tickers = []
    for row in _ROW_RE.findall(m.group(1)):
        cells = _CELL_RE.findall(row)
        if not cells:
            continue
        symbol = html.unescape(_TAG_RE.sub("", cells[0])).strip()
        if symbol:
            # Yahoo uses "-" for share classes: BRK.B -> BRK-B
            tickers.append(symbol.replace(".", "-"))
    return tickers


def main():
    parser = argparse.ArgumentParser(description="Write the S&P 500 constituents as a universe YAML.")
    parser.add_argument("--out", default="universe.yaml", help="Output YAML path")
    parser.add_argument("--timeout", type=int, default=20, help="HTTP timeout (seconds)")
    args = parser.parse_args()

    resp = requests.get(SP500_URL, headers={"User-Agent": USER_AGENT}, timeout=args.timeout)
    resp.raise_for_status()

    tickers = parse_constituents(resp.text)
    if not tickers:
        print("No constituents found; page layout may have changed", file=sys.stderr)
        return 1

    data = {"universe": {"name": "S&P 500", "tickers": tickers}}
    Path(args.out).write_text(yaml.safe_dump(data, sort_keys=False))
    print(f"Wrote {len(tickers)} tickers to {args.out}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
