"""
Tests for the CoinCap and CoinGecko providers: request building, envelope
parsing, error tagging. HTTP is mocked; no live network.
"""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from crypto_rsi.errors import ParseError, UpstreamError
from crypto_rsi.providers.base import DAY_MS, Coin, PricePoint, time_window
from crypto_rsi.providers.coincap import CoinCapProvider, parse_assets, parse_history
from crypto_rsi.providers.coincap import resolve_interval as coincap_interval
from crypto_rsi.providers.coingecko import CoinGeckoProvider, parse_market_chart, parse_markets
from crypto_rsi.providers.coingecko import resolve_interval as coingecko_interval
from crypto_rsi.providers.resilience import HttpClient, RetryConfig

from tests.fakes.providers import FakeClock, FakeResponse, FakeSession

NOW_MS = 1_760_000_000_000


class TestTimeWindow:
    def test_window_spans_range_days(self):
        start, end = time_window(30, now_ms=NOW_MS)
        assert end == NOW_MS
        assert end - start == 30 * DAY_MS

    def test_window_defaults_to_now(self):
        start, end = time_window(1)
        assert end - start == DAY_MS


# ---------------------------------------------------------------------------
# CoinCap
# ---------------------------------------------------------------------------


class TestCoinCapParsing:
    @pytest.mark.parametrize(
        "days,expected",
        [(1, "m30"), (7, "m30"), (8, "h1"), (14, "h1"), (30, "h2"), (31, "h6"), (90, "h6"), (91, "d1"), (365, "d1")],
    )
    def test_resolve_interval(self, days, expected):
        assert coincap_interval(days) == expected

    def test_parse_assets_normalizes_and_dedupes(self):
        payload = {
            "data": [
                {"id": "bitcoin", "name": "Bitcoin", "symbol": "btc"},
                {"id": "ethereum", "name": "Ethereum", "symbol": "ETH"},
                {"id": "bitcoin", "name": "Bitcoin again", "symbol": "BTC"},
                {"id": "", "name": "Nameless", "symbol": "X"},
                "junk",
            ]
        }
        coins = parse_assets(payload)
        assert coins == [
            Coin(id="bitcoin", name="Bitcoin", symbol="BTC"),
            Coin(id="ethereum", name="Ethereum", symbol="ETH"),
        ]

    def test_parse_history_drops_bad_entries_and_sorts(self):
        payload = {
            "data": [
                {"priceUsd": "101.5", "time": 2000},
                {"priceUsd": "100.0", "time": 1000},
                {"priceUsd": None, "time": 3000},
                {"priceUsd": "NaN", "time": 4000},
                {"priceUsd": "102", "time": None},
                {"priceUsd": "abc", "time": 5000},
                {"time": 6000},
            ]
        }
        assert parse_history(payload) == [PricePoint(1000, 100.0), PricePoint(2000, 101.5)]

    @pytest.mark.parametrize("payload", [None, [], {"error": "x"}, {"data": {"id": "bitcoin"}}])
    def test_malformed_envelope_raises_parse_error(self, payload):
        with pytest.raises(ParseError):
            parse_history(payload)
        with pytest.raises(ParseError):
            parse_assets(payload)


class TestCoinCapProvider:
    def test_list_top_coins_requests_limit(self):
        http = MagicMock()
        http.get_json.return_value = {"data": [{"id": f"c{i}", "name": f"C{i}", "symbol": f"c{i}"} for i in range(5)]}
        provider = CoinCapProvider(http=http, base_url="https://api.coincap.test/v2/")
        coins = provider.list_top_coins(3)
        http.get_json.assert_called_once_with("https://api.coincap.test/v2/assets", {"limit": 3})
        assert [c.symbol for c in coins] == ["C0", "C1", "C2"]

    @patch("crypto_rsi.providers.base.time.time", return_value=NOW_MS / 1000)
    def test_fetch_history_builds_window_and_interval(self, _mock_time):
        http = MagicMock()
        http.get_json.return_value = {"data": [{"priceUsd": "1.0", "time": NOW_MS}]}
        provider = CoinCapProvider(http=http)
        points = provider.fetch_history("bitcoin", 30)
        url, params = http.get_json.call_args[0]
        assert url.endswith("/assets/bitcoin/history")
        assert params == {"interval": "h2", "start": NOW_MS - 30 * DAY_MS, "end": NOW_MS}
        assert points == [PricePoint(NOW_MS, 1.0)]

    def test_history_errors_are_tagged_with_coin_id(self):
        http = MagicMock()
        http.get_json.side_effect = UpstreamError("HTTP 404", status=404)
        provider = CoinCapProvider(http=http)
        with pytest.raises(UpstreamError) as info:
            provider.fetch_history("dogecoin", 7)
        assert info.value.coin_id == "dogecoin"

    def test_parse_errors_are_tagged_with_coin_id(self):
        http = MagicMock()
        http.get_json.return_value = {"unexpected": True}
        with pytest.raises(ParseError) as info:
            CoinCapProvider(http=http).fetch_history("solana", 7)
        assert info.value.coin_id == "solana"

    def test_coin_id_is_escaped_in_path(self):
        http = MagicMock()
        http.get_json.return_value = {"data": []}
        CoinCapProvider(http=http).fetch_history("weird/id?x=1", 7)
        url, _ = http.get_json.call_args[0]
        assert url.endswith("/assets/weird%2Fid%3Fx%3D1/history")

    def test_through_http_client(self):
        clock = FakeClock()
        session = FakeSession([FakeResponse(200, {"data": [{"id": "bitcoin", "name": "Bitcoin", "symbol": "BTC"}]})])
        http = HttpClient(
            min_interval_s=0, retry_config=RetryConfig(jitter_s=0.0), session=session,
            clock=clock.monotonic, sleep=clock.sleep,
        )
        coins = CoinCapProvider(http=http).list_top_coins(20)
        assert coins == [Coin("bitcoin", "Bitcoin", "BTC")]
        assert session.urls == ["https://api.coincap.io/v2/assets?limit=20"]


# ---------------------------------------------------------------------------
# CoinGecko
# ---------------------------------------------------------------------------


class TestCoinGecko:
    @pytest.mark.parametrize("days,expected", [(1, "5m"), (2, "1h"), (90, "1h"), (91, "1d")])
    def test_resolve_interval(self, days, expected):
        assert coingecko_interval(days) == expected

    def test_parse_markets(self):
        payload = [
            {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"},
            {"id": "ethereum", "symbol": "eth", "name": "Ethereum"},
            {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"},
        ]
        assert [c.symbol for c in parse_markets(payload)] == ["BTC", "ETH"]

    def test_parse_markets_rejects_non_list(self):
        with pytest.raises(ParseError):
            parse_markets({"status": {"error_code": 429}})

    def test_parse_market_chart(self):
        payload = {"prices": [[2000, 2.0], [1000, 1.0], [3000, None], ["x", 4.0], [4000]]}
        assert parse_market_chart(payload) == [PricePoint(1000, 1.0), PricePoint(2000, 2.0)]

    def test_parse_market_chart_rejects_missing_prices(self):
        with pytest.raises(ParseError):
            parse_market_chart({"market_caps": []})

    def test_list_top_coins_params(self):
        http = MagicMock()
        http.get_json.return_value = [{"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"}]
        CoinGeckoProvider(http=http).list_top_coins(10)
        url, params = http.get_json.call_args[0]
        assert url.endswith("/coins/markets")
        assert params["per_page"] == 10
        assert params["order"] == "market_cap_desc"

    @patch("crypto_rsi.providers.base.time.time", return_value=NOW_MS / 1000)
    def test_fetch_history_uses_seconds_window(self, _mock_time):
        http = MagicMock()
        http.get_json.return_value = {"prices": [[NOW_MS, 5.0]]}
        points = CoinGeckoProvider(http=http).fetch_history("bitcoin", 7)
        url, params = http.get_json.call_args[0]
        assert url.endswith("/coins/bitcoin/market_chart/range")
        assert params["to"] == NOW_MS // 1000
        assert params["to"] - params["from"] == 7 * 86400
        assert points == [PricePoint(NOW_MS, 5.0)]

    def test_history_errors_are_tagged(self):
        http = MagicMock()
        http.get_json.side_effect = ParseError("bad body")
        with pytest.raises(ParseError) as info:
            CoinGeckoProvider(http=http).fetch_history("ripple", 30)
        assert info.value.coin_id == "ripple"

    def test_coin_id_is_escaped_in_path(self):
        http = MagicMock()
        http.get_json.return_value = {"prices": []}
        CoinGeckoProvider(http=http).fetch_history("a b/c", 7)
        url, _ = http.get_json.call_args[0]
        assert url.endswith("/coins/a%20b%2Fc/market_chart/range")
