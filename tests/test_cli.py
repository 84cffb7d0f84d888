import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "sectorscreen" / "src"
sys.path.insert(0, str(SRC))

_TMP = tempfile.TemporaryDirectory()
os.environ["SECTORSCREEN_CACHE_DB"] = str(Path(_TMP.name) / "cli_cache.db")

from click.testing import CliRunner

from sectorscreen import cli
from sectorscreen.cache.sqlite import SQLiteCache
from sectorscreen.errors import UpstreamUnavailable
from sectorscreen.providers import yahoo


def _payload(symbol, prices, sector="Energy"):
    periods = ["2025-Q2", "2025-Q1", "2024-Q4"]
    return {
        "symbol": symbol,
        "name": f"{symbol} Corp",
        "sector": sector,
        "snapshots": [
            {"period": periods[i], "eps": 2.0, "price": p} for i, p in enumerate(prices)
        ],
    }


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        cli.cache = SQLiteCache(db_path=str(Path(self.tmpdir.name) / "cache.db"))
        self.runner = CliRunner()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _invoke(self, args):
        result = self.runner.invoke(cli.cli, args)
        self.assertEqual(result.exit_code, 0, msg=result.output)
        return json.loads(result.output)

    def test_screen_sample(self):
        payload = self._invoke(["screen", "--sample", "--search", "micro"])
        self.assertTrue(payload["ok"])
        data = payload["data"]
        self.assertEqual(data["total"], 6)
        self.assertEqual([t["symbol"] for t in data["rising_tickers"]], ["MSFT"])
        self.assertIn("avgPER", data["sectors"][0])
        self.assertIn("avgRise", data["rising_sectors"][0])

    def test_screen_filters(self):
        payload = self._invoke([
            "screen", "--sample", "--sector", "Technology", "--per-max", "170", "--eps-min", "1.4",
            "--sort", "symbol", "--order", "asc",
        ])
        self.assertEqual([r["symbol"] for r in payload["data"]["rows"]], ["AAPL", "MSFT"])

    def test_screen_annual(self):
        payload = self._invoke(["screen", "--sample", "--periodicity", "annual"])
        rows = payload["data"]["rows"]
        self.assertEqual({r["periodicity"] for r in rows}, {"annual"})

    def test_source_options_are_exclusive(self):
        result = self.runner.invoke(cli.cli, ["screen", "--sample", "--tickers", "AAPL"])
        self.assertNotEqual(result.exit_code, 0)
        result = self.runner.invoke(cli.cli, ["screen"])
        self.assertNotEqual(result.exit_code, 0)

    def test_limit_must_be_positive(self):
        with mock.patch.object(yahoo, "fetch_ticker_batch") as fetch:
            result = self.runner.invoke(cli.cli, ["screen", "--tickers", "XOM,CVX", "--limit", "-1"])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("--limit", result.output)
        fetch.assert_not_called()

    def test_repeated_tickers_give_one_row(self):
        raw = [_payload("BRK-B", [110, 100, 90])]
        with mock.patch.object(yahoo, "fetch_ticker_batch", return_value=raw) as fetch:
            payload = self._invoke(["screen", "--tickers", "BRK.B,brk-b"])
        self.assertEqual(fetch.call_args[0][0], ["BRK-B"])
        self.assertEqual(payload["data"]["total"], 1)

    def test_sector_drill_down(self):
        payload = self._invoke(["sector", "Technology", "--sample"])
        data = payload["data"]
        self.assertEqual(data["total"], 2)
        self.assertEqual(data["aggregate"]["count"], 2)

    def test_rise_from_sample(self):
        payload = self._invoke(["rise", "--ticker", "AAPL", "--sample"])
        data = payload["data"]
        # AAPL rises every quarter, so the rise starts at index 1
        self.assertEqual(data["start_index"], 1)
        self.assertEqual(data["latest"]["period"], "2025-Q2")
        self.assertEqual(data["before_start"]["period"], "2024-Q4")

    def test_rise_unknown_ticker(self):
        result = self.runner.invoke(cli.cli, ["rise", "--ticker", "ZZZ", "--sample"])
        self.assertNotEqual(result.exit_code, 0)

    def test_screen_tickers_uses_provider_and_cache(self):
        raw = [_payload("XOM", [110, 100, 90]), _payload("CVX", [95, 100, 105])]
        with mock.patch.object(yahoo, "fetch_ticker_batch", return_value=raw) as fetch:
            first = self._invoke(["screen", "--tickers", "xom,cvx"])
            second = self._invoke(["screen", "--tickers", "XOM,CVX"])

        self.assertEqual(fetch.call_count, 1)
        self.assertFalse(first["meta"]["cached"])
        self.assertTrue(second["meta"]["cached"])
        ranked = [t["symbol"] for t in first["data"]["rising_tickers"]]
        self.assertEqual(ranked, ["XOM", "CVX"])

    def test_fetch_quote(self):
        with mock.patch.object(yahoo, "fetch_raw_ticker", return_value=_payload("XOM", [110, 100])):
            payload = self._invoke(["fetch", "quote", "--ticker", "xom"])
        data = payload["data"]
        self.assertEqual(data["symbol"], "XOM")
        self.assertEqual(data["sector"], "Energy")
        self.assertEqual(data["snapshots"][0]["per"], 55.0)

    def test_export(self):
        with tempfile.TemporaryDirectory() as out:
            payload = self._invoke(["export", "--sample", "--out", out])
            export_dir = Path(payload["data"]["directory"])
            for name in ("view.json", "table.csv", "sectors.csv", "view.md"):
                self.assertTrue((export_dir / name).exists(), name)
            content = (export_dir / "view.md").read_text()
            self.assertIn("## Sector PER", content)
            self.assertIn("## Rising Tickers", content)

    def test_main_formats_upstream_errors(self):
        with mock.patch.object(yahoo, "fetch_ticker_batch", side_effect=UpstreamUnavailable("down")):
            with mock.patch.object(sys, "argv", ["sectorscreen", "screen", "--tickers", "AAA"]):
                with mock.patch("builtins.print") as fake_print:
                    with self.assertRaises(SystemExit) as ctx:
                        cli.main()
        self.assertEqual(ctx.exception.code, 1)
        envelope = json.loads(fake_print.call_args[0][0])
        self.assertFalse(envelope["ok"])
        self.assertEqual(envelope["error"]["type"], "UpstreamUnavailable")


if __name__ == "__main__":
    unittest.main()
