"""
CoinGecko market-data provider.

Uses the public CoinGecko v3 API (no authentication required):
  GET https://api.coingecko.com/api/v3/coins/markets?vs_currency=usd&order=market_cap_desc&per_page={n}&page=1
  GET https://api.coingecko.com/api/v3/coins/{id}/market_chart/range?vs_currency=usd&from={s}&to={s}

The public tier throttles hard, hence the wider default spacing. Granularity
of market_chart/range is chosen server-side from the window length.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

from ..errors import MarketDataError, ParseError
from .base import Coin, PricePoint, make_price_point, time_window, unique_coins
from .resilience import HttpClient

logger = logging.getLogger(__name__)

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_MIN_INTERVAL_S = 1.25
VS_CURRENCY = "usd"


def resolve_interval(range_days: int) -> str:
    """Granularity CoinGecko returns for a window of `range_days` days."""
    if range_days <= 1:
        return "5m"
    if range_days <= 90:
        return "1h"
    return "1d"


def parse_markets(payload: Any) -> List[Coin]:
    if not isinstance(payload, list):
        raise ParseError(f"Unexpected CoinGecko markets response type: {type(payload).__name__}")
    coins = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        coin_id = item.get("id")
        symbol = item.get("symbol")
        if not coin_id or not symbol:
            continue
        coins.append(Coin(id=str(coin_id), name=str(item.get("name") or symbol), symbol=str(symbol).upper()))
    return unique_coins(coins)


def parse_market_chart(payload: Any) -> List[PricePoint]:
    if not isinstance(payload, dict) or not isinstance(payload.get("prices"), list):
        raise ParseError("CoinGecko market_chart response missing prices list")
    points = []
    for row in payload["prices"]:
        if not isinstance(row, (list, tuple)) or len(row) < 2:
            continue
        point = make_price_point(row[0], row[1])
        if point is not None:
            points.append(point)
    points.sort(key=lambda p: p.timestamp)
    return points


class CoinGeckoProvider:
    """Top coins by market cap and price history from the CoinGecko public API."""

    default_min_interval_s = COINGECKO_MIN_INTERVAL_S

    def __init__(self, http: Optional[HttpClient] = None, base_url: str = COINGECKO_BASE_URL) -> None:
        self._http = http or HttpClient(min_interval_s=self.default_min_interval_s)
        self.base_url = base_url.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "coingecko"

    def list_top_coins(self, limit: int) -> List[Coin]:
        params = {
            "vs_currency": VS_CURRENCY,
            "order": "market_cap_desc",
            "per_page": int(limit),
            "page": 1,
        }
        coins = parse_markets(self._http.get_json(f"{self.base_url}/coins/markets", params))[: int(limit)]
        logger.info("CoinGecko listed %d coins", len(coins))
        return coins

    def fetch_history(self, coin_id: str, range_days: int) -> List[PricePoint]:
        start_ms, end_ms = time_window(range_days)
        params = {"vs_currency": VS_CURRENCY, "from": start_ms // 1000, "to": end_ms // 1000}
        try:
            payload = self._http.get_json(f"{self.base_url}/coins/{quote(coin_id, safe='')}/market_chart/range", params)
            points = parse_market_chart(payload)
        except MarketDataError as exc:
            exc.coin_id = coin_id
            raise
        logger.debug("CoinGecko history for %s: %d points (~%s)", coin_id, len(points), resolve_interval(range_days))
        return points
