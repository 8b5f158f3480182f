"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider endpoints, cache pools, and the store path.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Defaults if no YAML or env
_DEFAULTS = {
    "fred": {
        "base_url": "https://api.stlouisfed.org/fred/series/observations",
        "api_key": "",
        "connect_timeout_s": 5.0,
        "read_timeout_s": 10.0,
        "max_retries": 1,
    },
    "alternative": {
        "enabled": False,
        "base_url": "",
        "api_key": "",
        "connect_timeout_s": 5.0,
        "read_timeout_s": 10.0,
        "use_fallback_data": True,
    },
    "cache": {
        "fanout_timeout_s": 15.0,
        "pools": {
            "yield_curves": {"ttl_seconds": 24 * 3600, "max_size": 500},
            "time_series": {"ttl_seconds": 72 * 3600, "max_size": 200},
            "reference": {"ttl_seconds": 4 * 3600, "max_size": 1000},
        },
    },
    "store": {
        "path": "fi_marketdata.sqlite",
        "series_tolerance_days": 7,
        "latest_max_age_days": 1,
    },
    "providers": {"priority": ["fred", "alternative"]},
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _config_yaml_path() -> Path:
    """FI_MARKETDATA_CONFIG if set, else config.yaml at repo root (parent of package dir)."""
    explicit = os.environ.get("FI_MARKETDATA_CONFIG", "").strip()
    if explicit:
        return Path(explicit)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
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
    fred_key = os.environ.get("FRED_API_KEY")
    if fred_key:
        overrides.setdefault("fred", {})["api_key"] = fred_key
    path = os.environ.get("FI_MARKETDATA_DB_PATH")
    if path:
        overrides.setdefault("store", {})["path"] = path
    enabled = os.environ.get("ALTERNATIVE_API_ENABLED")
    if enabled:
        overrides.setdefault("alternative", {})["enabled"] = enabled.strip().lower() in _TRUTHY
    alt_url = os.environ.get("ALTERNATIVE_API_BASE_URL")
    if alt_url:
        overrides.setdefault("alternative", {})["base_url"] = alt_url
    alt_key = os.environ.get("ALTERNATIVE_API_KEY")
    if alt_key:
        overrides.setdefault("alternative", {})["api_key"] = alt_key
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors; each takes an optional pre-merged config
def fred_settings(cfg: Optional[dict] = None) -> Dict[str, Any]:
    return dict((cfg or get_config())["fred"])


def alternative_settings(cfg: Optional[dict] = None) -> Dict[str, Any]:
    return dict((cfg or get_config())["alternative"])


def cache_settings(cfg: Optional[dict] = None) -> Dict[str, Any]:
    return dict((cfg or get_config())["cache"])


def db_path(cfg: Optional[dict] = None) -> str:
    return str((cfg or get_config())["store"]["path"])


def series_tolerance_days(cfg: Optional[dict] = None) -> int:
    return int((cfg or get_config())["store"]["series_tolerance_days"])


def latest_max_age_days(cfg: Optional[dict] = None) -> int:
    return int((cfg or get_config())["store"]["latest_max_age_days"])


def provider_priority(cfg: Optional[dict] = None) -> List[str]:
    return list((cfg or get_config()).get("providers", {}).get("priority", _DEFAULTS["providers"]["priority"]))
