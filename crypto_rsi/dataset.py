"""
Renderable RSI datasets: one coin's identity joined with its RSI series.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import pandas as pd

from .providers.base import Coin, PricePoint
from .rsi import compute_rsi


@dataclass(frozen=True)
class Dataset:
    """RSI series for one coin; points are (timestamp ms, RSI or None)."""

    label: str
    display_name: str
    points: Tuple[Tuple[int, Optional[float]], ...]

    def is_renderable(self) -> bool:
        return any(y is not None for _, y in self.points)

    @property
    def legend(self) -> str:
        return f"{self.label} ({self.display_name})"

    def to_frame(self) -> pd.DataFrame:
        """Points as a DataFrame with a UTC datetime column; None becomes NaN."""
        df = pd.DataFrame(list(self.points), columns=["ts_ms", "rsi"])
        df["rsi"] = pd.to_numeric(df["rsi"], errors="coerce")
        df["ts_utc"] = pd.to_datetime(df["ts_ms"], unit="ms", utc=True)
        return df[["ts_utc", "ts_ms", "rsi"]]


def clean_history(history: Iterable[PricePoint]) -> list[PricePoint]:
    return [p for p in history if p is not None and p.is_valid()]


def build_dataset(coin: Coin, history: Iterable[PricePoint], period: int) -> Optional[Dataset]:
    """
    Compute RSI for a coin's history and pair it with timestamps.

    Returns None when no point has an RSI value (insufficient data), so the
    caller can tell "nothing to draw" apart from a failed fetch.
    """
    cleaned = clean_history(history)
    rsi = compute_rsi([p.price for p in cleaned], period)
    points = tuple((p.timestamp, value) for p, value in zip(cleaned, rsi))
    dataset = Dataset(label=coin.symbol, display_name=coin.name, points=points)
    return dataset if dataset.is_renderable() else None
