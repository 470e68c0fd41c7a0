"""
Import the package, its providers and app.py without starting Streamlit.
Catches broken relative imports and missing public names.
"""
from __future__ import annotations

import importlib
import importlib.util
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize(
    "module",
    [
        "crypto_rsi",
        "crypto_rsi.providers",
        "crypto_rsi.providers.coincap",
        "crypto_rsi.providers.coingecko",
        "crypto_rsi.providers.defaults",
    ],
)
def test_public_names_resolve(module):
    mod = importlib.import_module(module)
    for name in getattr(mod, "__all__", []):
        assert hasattr(mod, name), f"{module} is missing {name}"


def test_builtin_providers_satisfy_protocol():
    from crypto_rsi.providers import CoinCapProvider, CoinGeckoProvider, MarketDataProvider

    assert isinstance(CoinCapProvider(), MarketDataProvider)
    assert isinstance(CoinGeckoProvider(), MarketDataProvider)


def test_import_app_without_streamlit_run():
    spec = importlib.util.spec_from_file_location("rsi_app", ROOT / "app.py")
    assert spec is not None and spec.loader is not None
    app = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(app)
    assert hasattr(app, "main")
    assert hasattr(app, "StreamlitPresenter")
