"""
CoinCap market-data provider.

Uses the public CoinCap v2 API (no authentication required):
  GET https://api.coincap.io/v2/assets?limit={n}
  GET https://api.coincap.io/v2/assets/{id}/history?interval={code}&start={ms}&end={ms}
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional
from urllib.parse import quote

from ..errors import MarketDataError, ParseError
from .base import Coin, PricePoint, make_price_point, time_window, unique_coins
from .resilience import HttpClient

logger = logging.getLogger(__name__)

COINCAP_BASE_URL = "https://api.coincap.io/v2"
COINCAP_MIN_INTERVAL_S = 0.15


def resolve_interval(range_days: int) -> str:
    """Sampling interval code: finer for short ranges, daily beyond 90 days."""
    if range_days <= 7:
        return "m30"
    if range_days <= 14:
        return "h1"
    if range_days <= 30:
        return "h2"
    if range_days <= 90:
        return "h6"
    return "d1"


def _data_list(payload: Any, what: str) -> List[Any]:
    if not isinstance(payload, dict):
        raise ParseError(f"Unexpected CoinCap {what} response type: {type(payload).__name__}")
    data = payload.get("data")
    if not isinstance(data, list):
        raise ParseError(f"CoinCap {what} response missing data list. Keys: {list(payload.keys())}")
    return data


def parse_assets(payload: Any) -> List[Coin]:
    coins = []
    for asset in _data_list(payload, "assets"):
        if not isinstance(asset, dict):
            continue
        coin_id = asset.get("id")
        symbol = asset.get("symbol")
        if not coin_id or not symbol:
            continue
        coins.append(Coin(id=str(coin_id), name=str(asset.get("name") or symbol), symbol=str(symbol).upper()))
    return unique_coins(coins)


def parse_history(payload: Any) -> List[PricePoint]:
    points = []
    for entry in _data_list(payload, "history"):
        if not isinstance(entry, dict):
            continue
        point = make_price_point(entry.get("time"), entry.get("priceUsd"))
        if point is not None:
            points.append(point)
    points.sort(key=lambda p: p.timestamp)
    return points


class CoinCapProvider:
    """Top assets and price history from the CoinCap public API."""

    default_min_interval_s = COINCAP_MIN_INTERVAL_S

    def __init__(self, http: Optional[HttpClient] = None, base_url: str = COINCAP_BASE_URL) -> None:
        self._http = http or HttpClient(min_interval_s=self.default_min_interval_s)
        self.base_url = base_url.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "coincap"

    def list_top_coins(self, limit: int) -> List[Coin]:
        payload = self._http.get_json(f"{self.base_url}/assets", {"limit": int(limit)})
        coins = parse_assets(payload)[: int(limit)]
        logger.info("CoinCap listed %d coins", len(coins))
        return coins

    def fetch_history(self, coin_id: str, range_days: int) -> List[PricePoint]:
        start, end = time_window(range_days)
        params = {"interval": resolve_interval(range_days), "start": start, "end": end}
        try:
            payload = self._http.get_json(f"{self.base_url}/assets/{quote(coin_id, safe='')}/history", params)
            points = parse_history(payload)
        except MarketDataError as exc:
            exc.coin_id = coin_id
            raise
        logger.debug("CoinCap history for %s: %d points (%s)", coin_id, len(points), params["interval"])
        return points
