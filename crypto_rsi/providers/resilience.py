"""
Resilience primitives: shared rate limiter, retry with exponential backoff,
Retry-After handling and a one-shot proxy transport fallback.

One HttpClient is shared by every provider call in the process, so its
RateLimiter spaces all outbound requests regardless of who issues them.
"""
from __future__ import annotations

import enum
import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests

from ..errors import NetworkError, ParseError, RateLimitExceeded, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "https://api.allorigins.win/raw?url="
CACHE_BUST_PARAM = "_cb"

# Statuses that mean "the direct route is blocked", not "the server said no".
PROXY_TRIGGER_STATUSES = (0, 403)


@dataclass
class RetryConfig:
    """Configuration for retry with exponential backoff."""
    max_attempts: int = 4
    base_delay_s: float = 1.0
    max_delay_s: float = 30.0
    backoff_factor: float = 2.0
    jitter_s: float = 0.25
    retry_after_cap_s: float = 120.0
    retry_on_status_codes: tuple[int, ...] = (500, 502, 503, 504)

    def backoff_delay(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        """Delay before retrying after failed attempt number `attempt` (1-based)."""
        delay = min(
            self.base_delay_s * (self.backoff_factor ** (attempt - 1)),
            self.max_delay_s,
        )
        if self.jitter_s > 0:
            delay += (rng or random).uniform(0, self.jitter_s)
        return delay


class RateLimiter:
    """Keeps consecutive calls at least `min_interval_s` apart."""

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval_s = max(0.0, float(min_interval_s))
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def wait(self) -> None:
        if self._last_call is not None:
            elapsed = self._clock() - self._last_call
            if elapsed < self.min_interval_s:
                self._sleep(self.min_interval_s - elapsed)
        self._last_call = self._clock()


class Transport(enum.Enum):
    DIRECT = "direct"
    PROXY = "proxy"


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP-date)."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def proxied_url(proxy_url: str, target_url: str) -> str:
    return f"{proxy_url}{quote(target_url, safe='')}"


class HttpClient:
    """
    JSON GET client with rate limiting, retry on 429/5xx and proxy fallback.

    Each request walks an explicit {DIRECT, PROXY} x attempt state machine:
    - a connection error, status 0 or 403 while DIRECT switches to PROXY once,
      without spending an attempt;
    - 429 waits for Retry-After (or backoff) and spends an attempt;
    - 5xx and transport errors back off and spend an attempt;
    - any other non-2xx fails immediately.
    """

    def __init__(
        self,
        *,
        min_interval_s: float = 0.15,
        retry_config: Optional[RetryConfig] = None,
        timeout_s: float = 15.0,
        proxy_fallback: bool = True,
        proxy_url: str = DEFAULT_PROXY_URL,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.retry_config = retry_config or RetryConfig()
        self.timeout_s = timeout_s
        self.proxy_fallback = proxy_fallback
        self.proxy_url = proxy_url
        self._session = session or requests.Session()
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.rate_limiter = RateLimiter(min_interval_s, clock=clock, sleep=sleep)

    def close(self) -> None:
        self._session.close()

    def _target_url(self, url: str, params: Optional[Dict[str, Any]], transport: Transport) -> str:
        query = dict(params or {})
        if transport is Transport.PROXY:
            query[CACHE_BUST_PARAM] = int(time.time() * 1000)
        prepared = requests.Request("GET", url, params=query).prepare()
        if transport is Transport.PROXY:
            return proxied_url(self.proxy_url, prepared.url)
        return prepared.url

    def _switch_to_proxy(self, transport: Transport, url: str, reason: str) -> bool:
        if transport is Transport.DIRECT and self.proxy_fallback:
            logger.warning("Direct request to %s blocked (%s); retrying via proxy", url, reason)
            return True
        return False

    def _backoff(self, attempt: int) -> None:
        delay = self.retry_config.backoff_delay(attempt, self._rng)
        logger.debug("Backing off %.2fs after attempt %d", delay, attempt)
        self._sleep(delay)

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET url and return the parsed JSON body, or raise a MarketDataError."""
        cfg = self.retry_config
        transport = Transport.DIRECT
        attempt = 0
        while True:
            target = self._target_url(url, params, transport)
            self.rate_limiter.wait()
            logger.debug("GET %s (%s, attempt %d/%d)", target, transport.value, attempt + 1, cfg.max_attempts)
            try:
                resp = self._session.get(target, timeout=self.timeout_s)
            except requests.ConnectionError as exc:
                if self._switch_to_proxy(transport, url, type(exc).__name__):
                    transport = Transport.PROXY
                    continue
                attempt += 1
                logger.warning("Request error for %s (attempt %d/%d): %s", url, attempt, cfg.max_attempts, exc)
                if attempt >= cfg.max_attempts:
                    raise NetworkError(f"Network error for {url}: {exc}") from exc
                self._backoff(attempt)
                continue
            except requests.RequestException as exc:
                attempt += 1
                logger.warning("Request error for %s (attempt %d/%d): %s", url, attempt, cfg.max_attempts, exc)
                if attempt >= cfg.max_attempts:
                    raise NetworkError(f"Network error for {url}: {exc}") from exc
                self._backoff(attempt)
                continue

            status = resp.status_code
            if status in PROXY_TRIGGER_STATUSES and self._switch_to_proxy(transport, url, f"HTTP {status}"):
                transport = Transport.PROXY
                continue

            if status == 429:
                attempt += 1
                if attempt >= cfg.max_attempts:
                    raise RateLimitExceeded(f"Rate limited by upstream for {url} after {attempt} attempts")
                retry_after = parse_retry_after(resp.headers.get("Retry-After"))
                if retry_after is not None:
                    delay = min(retry_after, cfg.retry_after_cap_s)
                    logger.warning("HTTP 429 for %s; honouring Retry-After %.2fs", url, delay)
                    self._sleep(delay)
                else:
                    logger.warning("HTTP 429 for %s; backing off (attempt %d/%d)", url, attempt, cfg.max_attempts)
                    self._backoff(attempt)
                continue

            if status in cfg.retry_on_status_codes:
                attempt += 1
                logger.warning("HTTP %s for %s (attempt %d/%d)", status, url, attempt, cfg.max_attempts)
                if attempt >= cfg.max_attempts:
                    raise UpstreamError(f"HTTP {status} from {url}", status=status)
                self._backoff(attempt)
                continue

            if not 200 <= status < 300:
                raise UpstreamError(f"HTTP {status} from {url}", status=status)

            try:
                return resp.json()
            except ValueError as exc:
                raise ParseError(f"Invalid JSON from {url}: {exc}") from exc
