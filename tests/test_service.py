import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest import mock
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "sectorscreen" / "src"
sys.path.insert(0, str(SRC))

import pandas as pd

from sectorscreen import service
from sectorscreen.cache.sqlite import SQLiteCache
from sectorscreen.errors import ProviderError, UpstreamUnavailable
from sectorscreen.providers import yahoo
from sectorscreen.universe import normalize_symbol


def _payload(symbol, eps=2.0, price=40.0):
    return {
        "symbol": symbol,
        "name": f"{symbol} Corp",
        "sector": "Energy",
        "price": price,
        "eps": eps,
        "per": None,
        "snapshots": [
            {"period": "2025-Q1", "eps": eps, "price": price, "per": 1.0},
            {"period": "2024-Q4", "eps": None, "price": 30.0, "per": None},
        ],
    }


class TestFetchTickerBatch(unittest.TestCase):
    def test_failing_symbol_is_omitted(self):
        def fake_fetch(symbol):
            if symbol == "BAD":
                raise ProviderError("boom")
            return _payload(symbol)

        with mock.patch.object(yahoo, "fetch_raw_ticker", side_effect=fake_fetch):
            raw = yahoo.fetch_ticker_batch(["AAA", "BAD", "CCC"], max_workers=3)

        self.assertEqual([p["symbol"] for p in raw], ["AAA", "CCC"])

    def test_all_failing_is_upstream_unavailable(self):
        with mock.patch.object(yahoo, "fetch_raw_ticker", side_effect=ProviderError("down")):
            with self.assertRaises(UpstreamUnavailable) as ctx:
                yahoo.fetch_ticker_batch(["AAA", "BBB"])
        self.assertEqual(set(ctx.exception.details["failures"]), {"AAA", "BBB"})

    def test_empty_symbol_list(self):
        self.assertEqual(yahoo.fetch_ticker_batch([]), [])


def _price_frame():
    idx = pd.to_datetime(["2025-03-27", "2025-04-01", "2024-12-30", "2025-01-06"])
    return pd.DataFrame({"Close": [99.0, 101.0, 88.0, 90.0]}, index=idx)


def _history(start=None, end=None, interval=None):
    df = _price_frame()
    mask = [start <= ts.date() <= end for ts in df.index]
    return df[mask]


class TestFetchRawTicker(unittest.TestCase):
    def _ticker(self):
        t = mock.MagicMock()
        t.info = {
            "shortName": "Acme",
            "sector": "Technology",
            "regularMarketPrice": 110.0,
            "trailingEps": 5.5,
        }
        t.earnings_history = pd.DataFrame(
            {"epsActual": [1.5, None], "epsEstimate": [1.4, 1.2]},
            index=pd.to_datetime(["2025-03-31", "2024-12-31"]),
        )
        t.history.side_effect = _history
        return t

    def test_builds_raw_payload(self):
        with mock.patch.object(yahoo.yf, "Ticker", return_value=self._ticker()):
            raw = yahoo.fetch_raw_ticker("ACME")

        self.assertEqual(raw["symbol"], "ACME")
        self.assertEqual(raw["name"], "Acme")
        self.assertEqual(raw["sector"], "Technology")
        self.assertAlmostEqual(raw["per"], 20.0)

        first, second = raw["snapshots"]
        self.assertEqual(first["period"], "2025-Q1")
        self.assertEqual(first["price"], 101.0)
        self.assertAlmostEqual(first["per"], 101.0 / 1.5)
        self.assertEqual(second["period"], "2024-Q4")
        self.assertIsNone(second["eps"])
        self.assertEqual(second["price"], 88.0)

    def test_missing_history_falls_back_to_market_price(self):
        t = self._ticker()
        t.history.side_effect = None
        t.history.return_value = pd.DataFrame({"Close": []})
        with mock.patch.object(yahoo.yf, "Ticker", return_value=t):
            raw = yahoo.fetch_raw_ticker("ACME")
        self.assertEqual(raw["snapshots"][0]["price"], 110.0)
        self.assertIsNone(raw["snapshots"][0]["per"])

    def test_provider_failure_raises(self):
        t = mock.MagicMock()
        type(t).info = mock.PropertyMock(side_effect=RuntimeError("no data"))
        with mock.patch.object(yahoo.yf, "Ticker", return_value=t):
            with self.assertRaises(ProviderError):
                yahoo.fetch_raw_ticker("NOPE")

    def test_quarter_end_price_picks_closest_day(self):
        t = self._ticker()
        self.assertEqual(yahoo.get_quarter_end_price("ACME", date(2025, 3, 31), ticker=t), 101.0)
        self.assertIsNone(yahoo.get_quarter_end_price("ACME", None, ticker=t))


class TestService(unittest.TestCase):
    def test_batch_reads_through_cache(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = SQLiteCache(db_path=str(Path(tmpdir) / "cache.db"))
            with mock.patch.object(yahoo, "fetch_ticker_batch", return_value=[_payload("AAA")]) as fetch:
                first = service.fetch_batch_rows(["aaa"], cache=cache)
                second = service.fetch_batch_rows(["AAA"], cache=cache)
                self.assertEqual(fetch.call_count, 1)

                service.fetch_batch_rows(["AAA"], cache=cache, force=True)
                self.assertEqual(fetch.call_count, 2)

        self.assertEqual(first, second)
        (row,) = first
        self.assertEqual(len(row.snapshots), 1)
        self.assertEqual(row.snapshots[0].per, 20.0)

    def test_stale_batch_is_refetched(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = SQLiteCache(db_path=str(Path(tmpdir) / "cache.db"))
            cache.put(service.batch_cache_key(["AAA"]), [_payload("AAA", price=10.0)], timestamp=0.0)
            with mock.patch.object(yahoo, "fetch_ticker_batch", return_value=[_payload("AAA")]) as fetch:
                (row,) = service.fetch_batch_rows(["AAA"], cache=cache)
            self.assertEqual(fetch.call_count, 1)
            self.assertEqual(row.snapshots[0].price, 40.0)

    def test_duplicate_symbols_fetched_once(self):
        symbols = [normalize_symbol(s) for s in ["BRK.B", "BRK-B"]]
        with mock.patch.object(yahoo, "fetch_raw_ticker", side_effect=lambda s: _payload(s)) as fetch:
            rows = service.fetch_batch_rows(symbols, max_workers=1)
        self.assertEqual(fetch.call_count, 1)
        self.assertEqual([r.symbol for r in rows], ["BRK-B"])

    def test_upstream_unavailable_propagates(self):
        with mock.patch.object(yahoo, "fetch_ticker_batch", side_effect=UpstreamUnavailable("down")):
            with self.assertRaises(UpstreamUnavailable):
                service.fetch_batch_rows(["AAA"])

    def test_ticker_row(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cache = SQLiteCache(db_path=str(Path(tmpdir) / "cache.db"))
            with mock.patch.object(yahoo, "fetch_raw_ticker", return_value=_payload("AAA")) as fetch:
                row = service.fetch_ticker_row("aaa", cache=cache)
                service.fetch_ticker_row("AAA", cache=cache)
            self.assertEqual(fetch.call_count, 1)
            self.assertEqual(row.symbol, "AAA")
            self.assertEqual(row.snapshots[0].per, 20.0)

    def test_unusable_ticker_payload(self):
        with mock.patch.object(yahoo, "fetch_raw_ticker", return_value={"name": "no symbol"}):
            self.assertIsNone(service.fetch_ticker_row("AAA"))


if __name__ == "__main__":
    unittest.main()
