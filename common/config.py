from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

_DEFAULTS: Dict[str, Any] = {
    "logging": {"level": "INFO"},
    "http": {"timeout_s": 30.0, "user_agent": "tile-archive/0.1"},
    "s3": {"region": None, "endpoint_url": None},
    # one read at offset 0; only the first 127 bytes are decoded
    "archive": {"header_fetch_length": 16384},
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load runtime parameters from YAML.

    A missing file yields the built-in defaults; a present file is merged over
    them, so partial files only need the keys they change.
    """
    p = Path(path or DEFAULT_CONFIG_PATH)
    if not p.exists():
        return copy.deepcopy(_DEFAULTS)
    with p.open("r") as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"config {p} must be a YAML mapping")
    return _merge(copy.deepcopy(_DEFAULTS), loaded)


def section(cfg: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    """Return cfg[name] with defaults applied, tolerating cfg=None."""
    merged = _merge(copy.deepcopy(_DEFAULTS), cfg or {})
    return merged.get(name, {})
