"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider choice, HTTP resilience, caching and UI defaults.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml

# Defaults if no YAML or env
_DEFAULTS = {
    "provider": {
        "name": "coincap",
        "max_coins": 20,
        "coincap_base_url": "https://api.coincap.io/v2",
        "coingecko_base_url": "https://api.coingecko.com/api/v3",
    },
    "http": {
        "timeout_s": 15.0,
        # None -> the provider's own default spacing
        "min_interval_s": None,
        "max_attempts": 4,
        "base_delay_s": 1.0,
        "backoff_factor": 2.0,
        "max_delay_s": 30.0,
        "jitter_s": 0.25,
        "retry_after_cap_s": 120.0,
        "proxy_fallback": True,
        "proxy_url": "https://api.allorigins.win/raw?url=",
    },
    "cache": {"history_ttl_s": 120.0},
    "load": {
        "default_period": 14,
        "default_range_days": 30,
        "progress_every": 5,
        "preview_limit": 3,
    },
    "ui": {
        "period_options": [7, 14, 21, 28],
        "range_options": [1, 7, 14, 30, 90, 180, 365],
    },
    "log_level": "INFO",
}

_TRUTHY = {"1", "true", "yes", "on"}


def _config_yaml_path() -> Path:
    """Config.yaml lives at repo root (parent of package dir); RSI_CONFIG overrides."""
    override = os.environ.get("RSI_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml(path: Optional[Path] = None) -> dict:
    config_path = path or _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    provider = os.environ.get("RSI_PROVIDER")
    if provider:
        overrides.setdefault("provider", {})["name"] = provider.strip().lower()
    max_coins = os.environ.get("RSI_MAX_COINS")
    if max_coins:
        overrides.setdefault("provider", {})["max_coins"] = int(max_coins)
    proxy = os.environ.get("RSI_PROXY_FALLBACK")
    if proxy:
        overrides.setdefault("http", {})["proxy_fallback"] = proxy.strip().lower() in _TRUTHY
    level = os.environ.get("RSI_LOG_LEVEL")
    if level:
        overrides["log_level"] = level.strip().upper()
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def provider_name() -> str:
    return str(get_config()["provider"]["name"])


def max_coins() -> int:
    return int(get_config()["provider"]["max_coins"])


def history_ttl_s() -> float:
    return float(get_config()["cache"]["history_ttl_s"])


def default_period() -> int:
    return int(get_config()["load"]["default_period"])


def default_range_days() -> int:
    return int(get_config()["load"]["default_range_days"])


def progress_every() -> int:
    return int(get_config()["load"]["progress_every"])


def preview_limit() -> int:
    return int(get_config()["load"]["preview_limit"])


def period_options() -> list:
    return [int(p) for p in get_config()["ui"]["period_options"]]


def range_options() -> list:
    return [int(d) for d in get_config()["ui"]["range_options"]]


def log_level() -> str:
    return str(get_config().get("log_level", _DEFAULTS["log_level"])).upper()
