#!/usr/bin/env python3
"""
Crypto RSI dashboard: Wilder RSI for the top coins by market cap.
Run: streamlit run app.py
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

import streamlit as st

from crypto_rsi.config import (
    default_period,
    default_range_days,
    log_level,
    period_options,
    range_options,
)
from crypto_rsi.dataset import Dataset
from crypto_rsi.orchestrator import LoadConfig, RSILoader
from crypto_rsi.ui import show_rsi_chart

PERIOD_KEY = "rsi_period"
RANGE_KEY = "rsi_range_days"
LOADER_KEY = "rsi_loader"


class StreamlitPresenter:
    """
    Presenter writing into placeholders of the current script run.

    A widget change while a cycle is running makes Streamlit stop this script
    at its next st.* call, which lands in set_status or render. The loader
    releases its in-flight flag on the way out and the rerun starts a fresh
    cycle with the new controls, so a rerun replaces the running cycle
    instead of queueing behind it.
    """

    def __init__(self, status_slot: Any, chart_slot: Any) -> None:
        self._status_slot = status_slot
        self._chart_slot = chart_slot

    def read_config(self) -> LoadConfig:
        return LoadConfig(
            period=int(st.session_state.get(PERIOD_KEY, default_period())),
            range_days=int(st.session_state.get(RANGE_KEY, default_range_days())),
        )

    def set_status(self, text: str) -> None:
        self._status_slot.caption(text)

    def render(self, datasets: Sequence[Dataset], status: str) -> None:
        if datasets:
            show_rsi_chart(datasets, self._chart_slot)
        else:
            self._chart_slot.empty()
        self.set_status(status)


def _index_of(options: list, value: int) -> int:
    return options.index(value) if value in options else 0


def get_loader(presenter: StreamlitPresenter) -> RSILoader:
    """One loader per browser session; later runs re-point it at their placeholders."""
    loader = st.session_state.get(LOADER_KEY)
    if loader is None:
        loader = RSILoader.from_config(presenter)
        st.session_state[LOADER_KEY] = loader
    loader.presenter = presenter
    return loader


def main():
    logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="Crypto RSI", layout="wide")
    st.title("Crypto RSI Monitor")

    periods = period_options()
    ranges = range_options()
    col_period, col_range, col_refresh = st.columns([1, 1, 1])
    with col_period:
        st.selectbox("RSI period", periods, index=_index_of(periods, default_period()), key=PERIOD_KEY)
    with col_range:
        st.selectbox(
            "Range (days)",
            ranges,
            index=_index_of(ranges, default_range_days()),
            key=RANGE_KEY,
        )
    with col_refresh:
        refresh = st.button("Refresh data", key="rsi_refresh")

    status_slot = st.empty()
    chart_slot = st.empty()
    presenter = StreamlitPresenter(status_slot, chart_slot)
    presenter.set_status("Refreshing data…" if refresh else "Loading…")

    loader = get_loader(presenter)
    loader.request_load(force=refresh)


if __name__ == "__main__":
    main()
