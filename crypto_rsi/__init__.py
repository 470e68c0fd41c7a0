"""
Top-level public API surface for the crypto RSI monitor.
Fetch top coins, compute Wilder RSI per coin, hand renderable datasets to a presenter.
"""

from __future__ import annotations

from ._version import __version__
from .dataset import Dataset, build_dataset
from .errors import MarketDataError, NetworkError, ParseError, RateLimitExceeded, UpstreamError
from .orchestrator import LoadConfig, LoadOutcome, LoadResult, LoadState, Presenter, RSILoader
from .rsi import compute_rsi

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "Dataset",
    "build_dataset",
    "compute_rsi",
    "LoadConfig",
    "LoadOutcome",
    "LoadResult",
    "LoadState",
    "Presenter",
    "RSILoader",
    "MarketDataError",
    "NetworkError",
    "ParseError",
    "RateLimitExceeded",
    "UpstreamError",
]
