"""
Plotly chart for RSI datasets and its Streamlit placement.
Presentation only: takes Dataset objects, returns figures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import plotly.graph_objects as go

from .dataset import Dataset

PALETTE = [
    "#38bdf8", "#f97316", "#facc15", "#34d399", "#a855f7", "#ec4899", "#22d3ee", "#f87171", "#c084fc", "#4ade80",
    "#60a5fa", "#fb7185", "#fbbf24", "#2dd4bf", "#818cf8", "#f472b6", "#14b8a6", "#e879f9", "#93c5fd", "#f59e0b",
]

OVERBOUGHT = 70
OVERSOLD = 30


def build_rsi_figure(datasets: Sequence[Dataset], *, height: int = 560) -> go.Figure:
    """One line per renderable dataset on a fixed 0-100 axis; gaps are bridged."""
    fig = go.Figure()
    renderable = [d for d in datasets if d.is_renderable()]
    for index, dataset in enumerate(renderable):
        df = dataset.to_frame()
        fig.add_trace(
            go.Scatter(
                x=df["ts_utc"],
                y=df["rsi"],
                mode="lines",
                name=dataset.legend,
                line={"color": PALETTE[index % len(PALETTE)], "width": 2, "shape": "spline", "smoothing": 0.2},
                connectgaps=True,
                hovertemplate="%{x|%b %d, %Y %H:%M}<br>" + dataset.label + ": %{y:.2f}<extra></extra>",
            )
        )
    for level in (OVERBOUGHT, OVERSOLD):
        fig.add_hline(y=level, line_dash="dot", line_color="rgba(148, 163, 184, 0.6)")
    fig.update_layout(
        height=height,
        hovermode="x unified",
        legend={"font": {"size": 12}},
        margin={"l": 40, "r": 20, "t": 30, "b": 40},
        xaxis={"title": None, "gridcolor": "rgba(148, 163, 184, 0.1)"},
        yaxis={"title": "RSI", "range": [0, 100], "dtick": 10, "gridcolor": "rgba(148, 163, 184, 0.1)"},
    )
    return fig


WIDE_LAYOUT_MIN_VERSION = (1, 40)


def chart_width_kwargs(streamlit_version: str) -> Dict[str, Any]:
    """plotly_chart kwargs that stretch the chart on the given Streamlit release."""
    try:
        release = tuple(int(part) for part in streamlit_version.split(".")[:2])
    except ValueError:
        return {"use_container_width": True}
    if release >= WIDE_LAYOUT_MIN_VERSION:
        return {"width": "stretch"}
    return {"use_container_width": True}


def show_rsi_chart(datasets: Sequence[Dataset], target: Any, *, streamlit_version: Optional[str] = None) -> Any:
    """Draw the RSI figure into a Streamlit container or placeholder."""
    if streamlit_version is None:
        import streamlit as st

        streamlit_version = st.__version__
    return target.plotly_chart(build_rsi_figure(datasets), **chart_width_kwargs(streamlit_version))
