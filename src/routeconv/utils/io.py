from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


def load_yaml(path: str | Path) -> Dict[str, Any]:
    """Read a scenario file; an empty file is an empty mapping."""
    with Path(path).open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def deep_merge(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def jsonable(value: Any) -> Any:
    """Map infinite costs to ``None`` and node-keyed dicts to string keys."""
    if isinstance(value, float) and math.isinf(value):
        return None
    if isinstance(value, Mapping):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


def write_json(path: str | Path, obj: Any) -> None:
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(jsonable(obj), f, ensure_ascii=False, indent=2, sort_keys=True, allow_nan=False)


def make_run_dir(output_dir: str | Path, name: str, protocol: str) -> Path:
    """Create ``<output_dir>/<name>_<protocol>_<utc stamp>``, suffixed if the stamp collides."""
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)
    stem = f"{name}_{protocol}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S%fZ')}"
    candidate = root / stem
    suffix = 1
    while True:
        try:
            candidate.mkdir()
            return candidate
        except FileExistsError:
            candidate = root / f"{stem}-{suffix}"
            suffix += 1
