import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Freshness windows for cached raw provider payloads
BATCH_TTL_SECONDS = 60 * 60
TICKER_TTL_SECONDS = 10 * 60

# Quarter-end price lookup searches this many days either side of the date
QUARTER_PRICE_WINDOW_DAYS = 7

DEFAULT_ROWS_PER_PAGE = 10
DEFAULT_WORKERS = 4


def load_env_file(path: str = ".env"):
    """
    Load environment variables from a .env file into os.environ.
    Does not override existing strings.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except Exception as e:
        logger.warning(f"Failed to load .env: {e}")

# Load on import
load_env_file()


def get_cache_path() -> str:
    """Path of the SQLite cache database."""
    return os.environ.get("SECTORSCREEN_CACHE_DB") or "sectorscreen_cache.db"


def get_max_workers() -> int:
    """Parallel provider fetches, from SECTORSCREEN_WORKERS (default 4)."""
    raw = os.environ.get("SECTORSCREEN_WORKERS")
    if not raw:
        return DEFAULT_WORKERS
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer SECTORSCREEN_WORKERS={raw!r}")
        return DEFAULT_WORKERS
    return max(1, value)
