"""
Load orchestration: fetch coins -> fetch each history -> compute RSI -> render.

RSILoader runs one load cycle at a time. A load requested while a cycle is in
flight is coalesced into a single pending request that the running caller
executes right after the current cycle; a forced refresh promotes the pending
request to forced. Per-coin histories are fetched one after another, never
concurrently, so the shared rate limiter and the progress counter stay
monotonic.
"""
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from .cache import HistoryCache
from .dataset import Dataset, build_dataset
from .errors import MarketDataError
from .providers.base import Coin, MarketDataProvider, PricePoint

logger = logging.getLogger(__name__)

STATUS_FETCHING_COINS = "Fetching top cryptocurrencies…"
STATUS_UNAVAILABLE = "Market data is temporarily unavailable. Please try again in a few minutes."
STATUS_NO_DATA = "No RSI data available for the selected range. Try increasing the number of days."
STATUS_ERROR = "Something went wrong while loading the data. Please try again later."


class LoadState(enum.Enum):
    IDLE = "idle"
    FETCHING_COINS = "fetching_coins"
    FETCHING_HISTORIES = "fetching_histories"
    RENDERING = "rendering"


class LoadOutcome(enum.Enum):
    OK = "ok"
    PARTIAL = "partial"
    NO_DATA = "no_data"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class LoadConfig:
    """User-selected parameters, read fresh on every load."""

    period: int
    range_days: int

    def __post_init__(self) -> None:
        if int(self.period) < 1:
            raise ValueError(f"period must be >= 1, got {self.period}")
        if int(self.range_days) < 1:
            raise ValueError(f"range_days must be >= 1, got {self.range_days}")


@dataclass
class LoadResult:
    """Outcome of one load cycle."""

    config: LoadConfig
    outcome: LoadOutcome
    status: str
    datasets: List[Dataset] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    insufficient: List[str] = field(default_factory=list)


class Presenter(Protocol):
    """Presentation collaborator: supplies controls, shows status, draws datasets."""

    def read_config(self) -> LoadConfig: ...

    def set_status(self, text: str) -> None: ...

    def render(self, datasets: Sequence[Dataset], status: str) -> None: ...


def preview_names(names: Sequence[str], limit: int) -> str:
    """'A, B, C +2 more' style preview capped at `limit` names."""
    shown = ", ".join(names[:limit])
    extra = len(names) - limit
    return f"{shown} +{extra} more" if extra > 0 else shown


def classify(
    config: LoadConfig,
    total: int,
    datasets: Sequence[Dataset],
    failed: Sequence[str],
    insufficient: Sequence[str],
    preview_limit: int = 3,
) -> tuple[LoadOutcome, str]:
    """
    Terminal outcome and status text for a finished batch.

    `failed` and `insufficient` hold one display symbol per coin, so coins
    sharing a symbol are each counted.
    """
    if total == 0 or len(failed) == total:
        return LoadOutcome.UNAVAILABLE, STATUS_UNAVAILABLE
    if not datasets:
        status = STATUS_NO_DATA
        if insufficient:
            status += f" (no data: {preview_names(list(insufficient), preview_limit)})"
        return LoadOutcome.NO_DATA, status

    status = (
        f"Showing RSI for {len(datasets)} coins. "
        f"Period: {config.period}. Range: {config.range_days} days."
    )
    notes = []
    if failed:
        notes.append(f"Failed: {len(failed)} ({preview_names(list(failed), preview_limit)}).")
    if insufficient:
        notes.append(
            f"Insufficient data: {len(insufficient)} ({preview_names(list(insufficient), preview_limit)})."
        )
    if notes:
        return LoadOutcome.PARTIAL, status + " " + " ".join(notes)
    return LoadOutcome.OK, status


class RSILoader:
    """
    Stateful fetch-compute-render loop. Construct once per session.

    Owns the coin cache, the history cache and the single-flight flag.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        presenter: Presenter,
        *,
        max_coins: int = 20,
        progress_every: int = 5,
        preview_limit: int = 3,
        history_cache: Optional[HistoryCache] = None,
    ) -> None:
        self.provider = provider
        self.presenter = presenter
        self.max_coins = max_coins
        self.progress_every = max(1, progress_every)
        self.preview_limit = preview_limit
        self.history_cache = history_cache if history_cache is not None else HistoryCache(max_age_seconds=0)
        self.state = LoadState.IDLE
        self.cycles_run = 0
        self.last_result: Optional[LoadResult] = None
        self._coins: List[Coin] = []
        self._lock = threading.Lock()
        self._in_flight = False
        self._pending_force: Optional[bool] = None

    @classmethod
    def from_config(cls, presenter: Presenter, provider: Optional[MarketDataProvider] = None) -> "RSILoader":
        """Build a loader wired to the configured provider and cache settings."""
        from . import config
        from .providers.defaults import create_provider

        return cls(
            provider or create_provider(config.provider_name()),
            presenter,
            max_coins=config.max_coins(),
            progress_every=config.progress_every(),
            preview_limit=config.preview_limit(),
            history_cache=HistoryCache(config.history_ttl_s()),
        )

    @property
    def busy(self) -> bool:
        return self._in_flight

    def invalidate(self) -> None:
        """Drop cached coins and histories; the next cycle refetches everything."""
        self._coins = []
        self.history_cache.clear()

    def request_load(self, force: bool = False) -> Optional[LoadResult]:
        """
        Run a load cycle, or queue one if a cycle is already running.

        Returns the result of the last cycle this call ran, or None when the
        request was coalesced into the running caller's pending slot.
        """
        with self._lock:
            if self._in_flight:
                self._pending_force = bool(self._pending_force) or force
                logger.debug("Load in progress; queued (force=%s)", self._pending_force)
                return None
            self._in_flight = True

        result: Optional[LoadResult] = None
        try:
            while True:
                result = self._run_cycle(force)
                with self._lock:
                    if self._pending_force is None:
                        self._in_flight = False
                        return result
                    force = self._pending_force
                    self._pending_force = None
        finally:
            with self._lock:
                if self._in_flight:
                    # Presenter raised mid-cycle; the queued request dies with it.
                    self._in_flight = False
                    self._pending_force = None
                self.state = LoadState.IDLE

    def _fetch_coins(self, force: bool) -> List[Coin]:
        if force:
            self.invalidate()
        if self._coins:
            return self._coins
        self.presenter.set_status(STATUS_FETCHING_COINS)
        coins = self.provider.list_top_coins(self.max_coins)
        if coins:
            self._coins = list(coins)
        return list(coins)

    def _fetch_history(self, coin: Coin, range_days: int) -> List[PricePoint]:
        key = (self.provider.provider_name, coin.id, range_days)
        cached = self.history_cache.get(key)
        if cached is not None:
            logger.debug("History cache hit for %s (%d days)", coin.id, range_days)
            return cached
        history = self.provider.fetch_history(coin.id, range_days)
        self.history_cache.put(key, history)
        return history

    def _run_cycle(self, force: bool) -> LoadResult:
        self.cycles_run += 1
        config = self.presenter.read_config()
        logger.info(
            "Load cycle %d: period=%d range=%dd force=%s",
            self.cycles_run, config.period, config.range_days, force,
        )

        self.state = LoadState.FETCHING_COINS
        try:
            coins = self._fetch_coins(force)
        except Exception:
            logger.exception("Fetching the coin list failed")
            return self._finish(LoadResult(config=config, outcome=LoadOutcome.ERROR, status=STATUS_ERROR))

        self.state = LoadState.FETCHING_HISTORIES
        total = len(coins)
        self.presenter.set_status(f"Fetching market data for {total} coins…")
        datasets: List[Dataset] = []
        failed: List[str] = []
        errors: Dict[str, str] = {}
        insufficient: List[str] = []
        for index, coin in enumerate(coins, start=1):
            try:
                history = self._fetch_history(coin, config.range_days)
            except MarketDataError as exc:
                logger.warning("History fetch failed for %s: %s", coin.id, exc)
                failed.append(coin.symbol)
                errors[coin.id] = str(exc)
            else:
                dataset = build_dataset(coin, history, config.period)
                if dataset is None:
                    logger.info("Insufficient data for %s (%d points)", coin.id, len(history))
                    insufficient.append(coin.symbol)
                else:
                    datasets.append(dataset)
            if index % self.progress_every == 0 or index == total:
                self.presenter.set_status(f"Loaded {index}/{total} coins…")

        outcome, status = classify(config, total, datasets, failed, insufficient, self.preview_limit)
        logger.info(
            "Load cycle %d done: %s (%d ok, %d failed, %d insufficient)",
            self.cycles_run, outcome.value, len(datasets), len(failed), len(insufficient),
        )
        return self._finish(
            LoadResult(
                config=config,
                outcome=outcome,
                status=status,
                datasets=datasets,
                failed=failed,
                errors=errors,
                insufficient=insufficient,
            )
        )

    def _finish(self, result: LoadResult) -> LoadResult:
        self.state = LoadState.RENDERING
        rendered = result.datasets if result.outcome in (LoadOutcome.OK, LoadOutcome.PARTIAL) else []
        self.presenter.render(rendered, result.status)
        self.last_result = result
        return result
