from pathlib import Path
from typing import Dict, Any, Optional
import yaml
from .errors import ValidationError


def normalize_symbol(symbol: str) -> str:
    """Upper-case and use Yahoo's class separator (BRK.B -> BRK-B)."""
    return symbol.strip().upper().replace(".", "-")


def load_universe(path: str = "universe.yaml", limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Load the ticker universe from YAML.
    Expected shape:
      universe:
        name: "S&P 500"
        tickers: [AAPL, MSFT, BRK.B]
    """
    p = Path(path)
    if not p.exists():
        raise ValidationError(f"Universe file not found: {path}")

    try:
        data = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid universe YAML: {e}")

    if "universe" not in data or not isinstance(data["universe"], dict):
        raise ValidationError("Universe file must contain a 'universe' object.")

    universe = data["universe"]
    name = universe.get("name") or "Universe"
    tickers = universe.get("tickers")

    if not isinstance(tickers, list) or not tickers:
        raise ValidationError("'universe.tickers' must be a non-empty list.")

    norm = []
    for t in tickers:
        if not isinstance(t, str) or not t.strip():
            raise ValidationError("All tickers must be non-empty strings.")
        symbol = normalize_symbol(t)
        if symbol not in norm:
            norm.append(symbol)

    if limit is not None:
        if limit < 1:
            raise ValidationError("limit must be >= 1.")
        norm = norm[:limit]

    return {"name": name, "tickers": norm}
