import sys
import json
import click
import logging
from .errors import format_error, ValidationError
from .logging import configure_logging
from .config import BATCH_TTL_SECONDS, DEFAULT_ROWS_PER_PAGE, TICKER_TTL_SECONDS, get_cache_path, get_max_workers
from .cache.sqlite import SQLiteCache
from .models.fundamentals import Periodicity, Sector
from .pipeline.query import ScreenerQuery, run_query, filter_by_periodicity, sort_rows, paginate, total_pages
from .pipeline.sectors import aggregate_sector_per, rows_in_sector
from .pipeline.rise import rise_context
from .export.paths import get_export_dir
from .export import json_export, csv_export, md_export
from .service import batch_cache_key, ticker_cache_key, fetch_batch_rows, fetch_ticker_row
from .sample import sample_rows
from .universe import load_universe, normalize_symbol

# Configure logging at module level
configure_logging()
cache = SQLiteCache(db_path=get_cache_path())
logger = logging.getLogger(__name__)

_SECTOR_CHOICES = ["all"] + [s.value for s in Sector]
_PERIODICITY_CHOICES = [p.value for p in Periodicity]


def _split_tickers(tickers):
    return list(dict.fromkeys(normalize_symbol(t) for t in tickers.split(',') if t.strip()))


def source_options(f):
    """Options selecting where rows come from."""
    f = click.option("--tickers", required=False, help="Comma-separated tickers (e.g. AAPL,MSFT)")(f)
    f = click.option("--universe", "universe_path", required=False, help="Universe YAML file")(f)
    f = click.option("--limit", type=int, required=False, help="Only the first N universe tickers")(f)
    f = click.option("--sample", is_flag=True, help="Use the bundled sample rows (offline)")(f)
    f = click.option("--workers", type=int, default=None, help="Max parallel provider fetches")(f)
    f = click.option("--force", is_flag=True, help="Bypass cache")(f)
    return f


def query_options(f):
    """Options building a ScreenerQuery."""
    f = click.option("--periodicity", type=click.Choice(_PERIODICITY_CHOICES), default="quarterly", show_default=True)(f)
    f = click.option("--sector", "sector_filter", type=click.Choice(_SECTOR_CHOICES), default="all", show_default=True)(f)
    f = click.option("--per-max", type=float, default=None, help="Drop rows whose latest PER exceeds this (missing PER is dropped too)")(f)
    f = click.option("--eps-min", type=float, default=None, help="Drop rows whose latest EPS is below this")(f)
    f = click.option("--search", default="", help="Symbol/name filter for the rising-tickers ranking")(f)
    f = click.option("--sort", "sort_key", type=click.Choice(["symbol", "per", "eps", "price", "rise"]), default="rise", show_default=True)(f)
    f = click.option("--order", "sort_order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)(f)
    f = click.option("--page", type=int, default=1, show_default=True)(f)
    f = click.option("--rows-per-page", type=int, default=DEFAULT_ROWS_PER_PAGE, show_default=True)(f)
    return f


def _load_rows(tickers, universe_path, limit, sample, workers, force):
    """Resolve the source options into enriched rows."""
    chosen = [bool(tickers), bool(universe_path), bool(sample)]
    if sum(chosen) != 1:
        raise click.BadParameter("Choose exactly one of --tickers, --universe or --sample.")
    if workers is not None and workers < 1:
        raise click.BadParameter("--workers must be >= 1.")
    if limit is not None and limit < 1:
        raise click.BadParameter("--limit must be >= 1.")

    if sample:
        return sample_rows(), False

    if universe_path:
        data = load_universe(universe_path, limit=limit)
        ticker_list = data["tickers"]
        logger.info(f"Loaded {len(ticker_list)} tickers from {data['name']}")
    else:
        ticker_list = _split_tickers(tickers)
        if limit is not None:
            ticker_list = ticker_list[:limit]
        if not ticker_list:
            raise click.BadParameter("tickers must include at least one symbol.")

    cached = not force and cache.get_fresh(batch_cache_key(ticker_list), BATCH_TTL_SECONDS) is not None
    rows = fetch_batch_rows(
        ticker_list,
        cache=cache,
        force=force,
        max_workers=workers or get_max_workers(),
    )
    return rows, cached


def _build_query(periodicity, sector_filter, per_max, eps_min, search, sort_key, sort_order, page, rows_per_page):
    if page < 1:
        raise click.BadParameter("--page must be >= 1.")
    if rows_per_page < 1:
        raise click.BadParameter("--rows-per-page must be >= 1.")
    return ScreenerQuery(
        periodicity=periodicity,
        sector_filter=sector_filter,
        per_max=per_max,
        eps_min=eps_min,
        search=search or "",
        sort_key=sort_key,
        sort_order=sort_order,
        page=page,
        rows_per_page=rows_per_page,
    )


@click.group()
@click.option("--verbose", is_flag=True, help="Debug logging")
def cli(verbose):
    """sectorscreen: Sector PER and momentum screener."""
    if verbose:
        configure_logging(logging.DEBUG)


@cli.command()
def version():
    """Print version information."""
    data = {"version": "0.1.0"}
    _print_json(data)


@cli.group()
def fetch():
    """Fetch and normalize provider data."""
    pass


@fetch.command("batch")
@source_options
def fetch_batch(tickers, universe_path, limit, sample, workers, force):
    """Fetch a batch of tickers and print the normalized rows."""
    rows, cached = _load_rows(tickers, universe_path, limit, sample, workers, force)
    _print_json([r.model_dump(mode="json", by_alias=True) for r in rows], cached=cached)


@fetch.command("quote")
@click.option("--ticker", required=True, help="Stock ticker symbol")
@click.option("--force", is_flag=True, help="Bypass cache")
def fetch_quote(ticker, force):
    """Fetch a single ticker."""
    symbol = normalize_symbol(ticker or "")
    if not symbol:
        raise click.BadParameter("ticker must be a non-empty symbol.")

    cached = not force and cache.get_fresh(ticker_cache_key(symbol), TICKER_TTL_SECONDS) is not None
    row = fetch_ticker_row(symbol, cache=cache, force=force)
    if row is None:
        raise ValidationError(f"No usable data for {symbol}", {"symbol": symbol})
    _print_json(row.model_dump(mode="json", by_alias=True), cached=cached)


@cli.command()
@source_options
@query_options
def screen(tickers, universe_path, limit, sample, workers, force, **query_args):
    """
    Run the screener: filtered table page, sector PER, rising sectors and tickers.
    """
    rows, cached = _load_rows(tickers, universe_path, limit, sample, workers, force)
    view = run_query(rows, _build_query(**query_args))
    _print_json(view.model_dump(mode="json", by_alias=True), cached=cached)


@cli.command()
@click.argument("sector_name", type=click.Choice([s.value for s in Sector]))
@source_options
@click.option("--periodicity", type=click.Choice(_PERIODICITY_CHOICES), default="quarterly", show_default=True)
@click.option("--sort", "sort_key", type=click.Choice(["symbol", "per", "eps", "price", "rise"]), default="rise", show_default=True)
@click.option("--order", "sort_order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--rows-per-page", type=int, default=DEFAULT_ROWS_PER_PAGE, show_default=True)
def sector(sector_name, tickers, universe_path, limit, sample, workers, force,
           periodicity, sort_key, sort_order, page, rows_per_page):
    """Drill down into one sector."""
    if page < 1 or rows_per_page < 1:
        raise click.BadParameter("--page and --rows-per-page must be >= 1.")
    rows, cached = _load_rows(tickers, universe_path, limit, sample, workers, force)
    members = rows_in_sector(filter_by_periodicity(rows, periodicity), sector_name)
    ordered = sort_rows(members, sort_key, sort_order)
    aggregates = aggregate_sector_per(members)

    _print_json({
        "sector": sector_name,
        "aggregate": aggregates[0].model_dump(mode="json", by_alias=True) if aggregates else None,
        "rows": [r.model_dump(mode="json", by_alias=True) for r in paginate(ordered, page, rows_per_page)],
        "total": len(members),
        "page": page,
        "total_pages": total_pages(len(members), rows_per_page),
    }, cached=cached)


@cli.command()
@click.option("--ticker", required=True, help="Stock ticker symbol")
@source_options
@click.option("--periodicity", type=click.Choice(_PERIODICITY_CHOICES), default="quarterly", show_default=True)
def rise(ticker, tickers, universe_path, limit, sample, workers, force, periodicity):
    """
    Show where the most recent price rise of a ticker started.
    Without a source option the ticker is fetched on its own.
    """
    symbol = normalize_symbol(ticker)
    if not (tickers or universe_path or sample):
        cached = not force and cache.get_fresh(ticker_cache_key(symbol), TICKER_TTL_SECONDS) is not None
        row = fetch_ticker_row(symbol, cache=cache, force=force)
        candidates = [row] if row is not None else []
    else:
        rows, cached = _load_rows(tickers, universe_path, limit, sample, workers, force)
        candidates = [r for r in filter_by_periodicity(rows, periodicity) if r.symbol == symbol]

    if not candidates:
        raise ValidationError(f"No {periodicity} data for {symbol}", {"symbol": symbol})

    context = rise_context(candidates[0])
    if context is None:
        raise ValidationError(f"{symbol} has no snapshots", {"symbol": symbol})
    _print_json(context.model_dump(mode="json", by_alias=True), cached=cached)


@cli.command()
@source_options
@query_options
@click.option("--out", default="./exports", help="Export root directory")
def export(tickers, universe_path, limit, sample, workers, force, out, **query_args):
    """
    Export a screener view to JSON/CSV/MD.
    """
    rows, cached = _load_rows(tickers, universe_path, limit, sample, workers, force)
    view = run_query(rows, _build_query(**query_args))
    export_dir = get_export_dir(root=out)

    json_export.export_json(view, export_dir / "view.json")
    csv_export.export_table_csv(view.rows, export_dir / "table.csv")
    csv_export.export_sectors_csv(view.sectors, export_dir / "sectors.csv")
    md_export.export_view_md(view, export_dir / "view.md")

    _print_json({
        "exported": ["view.json", "table.csv", "sectors.csv", "view.md"],
        "directory": str(export_dir)
    }, cached=cached)


def _print_json(data, cached=False):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": 1,
            "cached": cached
        }
    }
    click.echo(json.dumps(payload, indent=2))


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except Exception as e:
        if isinstance(e, click.exceptions.Exit):
             sys.exit(e.exit_code)
        if isinstance(e, click.exceptions.Abort):
             sys.exit(130)

        # Click usage errors (missing args, bad values) are input validation
        if isinstance(e, click.exceptions.UsageError):
             print(format_error(ValidationError(e.format_message())))
             sys.exit(1)

        print(format_error(e))
        sys.exit(1)

if __name__ == "__main__":
    main()
