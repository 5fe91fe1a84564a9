"""Configuration and instance loading helpers for the command-line glue layer.

Plain functions over dictionaries and NumPy arrays so they compose easily
inside tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

import numpy as np
import pandas as pd
import yaml

from ..config.config import ALGORITHM_DEFAULTS
from ..config.enums import parse_enum

# params keys that hold enum names, and the table each one is parsed with
_ENUM_KEYS = {
    "direction": "direction",
    "acceptance": "acceptance",
    "selection": "selection",
    "learning": "learning",
    "inertia": "inertia",
    "cooling_schedule": "sa_cooling",
    "strategy": "de_strategy",
}
_VARIANT_KIND = {
    "hill_climbing": "hc_variant",
    "vns": "vns_variant",
    "aco": "aco_variant",
}


def load_config(path_yaml: Path) -> Dict:
    """Read a YAML (or JSON) configuration file.

    Parameters
    ----------
    path_yaml:
        Path to the configuration file.

    Returns
    -------
    dict
        Parsed configuration dictionary.  Empty files resolve to ``{}``.
    """

    path = Path(path_yaml)
    if not path.exists():
        raise FileNotFoundError(path)

    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return {}

    if path.suffix.lower() == ".json":
        cfg = json.loads(text)
    else:
        cfg = yaml.safe_load(text)
    cfg = cfg or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"configuration root must be a mapping: {path}")
    return cfg


def _read_frame(path_like: Path) -> pd.DataFrame:
    """Return a Pandas ``DataFrame`` from CSV or Parquet input."""

    path = Path(path_like)
    if not path.exists():
        raise FileNotFoundError(path)
    if path.suffix.lower() in {".parquet", ".pq"}:
        return pd.read_parquet(path)
    return pd.read_csv(path)


def load_coords(path_table: Path) -> np.ndarray:
    """Load city coordinates (columns ``x`` and ``y``) from a CSV/Parquet table."""

    df = _read_frame(path_table)
    if not {"x", "y"}.issubset(df.columns):
        raise ValueError("coordinate table must contain 'x' and 'y' columns")
    if df[["x", "y"]].isna().any().any():
        raise ValueError("coordinate table contains missing values")
    coords = df[["x", "y"]].to_numpy(dtype=np.float64, copy=True)
    if coords.shape[0] < 2:
        raise ValueError("coordinate table needs at least 2 rows")
    return coords


def validate_params(algorithm: str, params: Mapping[str, Any]) -> None:
    """Check algorithm name, parameter keys and enum names before a run."""

    if algorithm not in ALGORITHM_DEFAULTS:
        raise ValueError(
            f"unknown algorithm {algorithm!r}; expected one of {sorted(ALGORITHM_DEFAULTS)}"
        )
    known = ALGORITHM_DEFAULTS[algorithm]
    unknown = sorted(k for k in params if k not in known)
    if unknown:
        raise ValueError(f"unknown {algorithm} parameters: {', '.join(unknown)}")

    for key, kind in _ENUM_KEYS.items():
        if key in params:
            parse_enum(kind, params[key])
    if "variant" in params and algorithm in _VARIANT_KIND:
        parse_enum(_VARIANT_KIND[algorithm], params["variant"])

    for key in ("iters", "seed", "log_period", "max_evaluations"):
        if key in params and int(params[key]) < 0:
            raise ValueError(f"{key} must be >= 0")


__all__ = [
    "load_config",
    "load_coords",
    "validate_params",
]
