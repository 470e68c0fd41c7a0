"""Fake provider, presenter, clock and HTTP session for loader and HTTP tests (no live network)."""

from .providers import (
    FakeClock,
    FakeMarketProvider,
    FakeResponse,
    FakeSession,
    RecordingPresenter,
    invalid_json_response,
    make_coins,
    make_history,
)

__all__ = [
    "FakeClock",
    "FakeMarketProvider",
    "FakeResponse",
    "FakeSession",
    "RecordingPresenter",
    "invalid_json_response",
    "make_coins",
    "make_history",
]
