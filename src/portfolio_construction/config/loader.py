"""
Runtime Config Loader
=====================
Load engine configurations from JSON/YAML files and merge them onto the
defaults of config.engine_config.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from portfolio_construction.config.engine_config import get_config


def _load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def read_structured_file(path: str) -> Any:
    """Read a .json/.yaml/.yml file and return the parsed document."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = file_path.suffix.lower()
    if suffix in {".yml", ".yaml"}:
        return _load_yaml(file_path)
    if suffix == ".json":
        with file_path.open("r", encoding="utf-8") as f:
            return json.load(f)

    raise ValueError(f"Unsupported file format: {suffix}. Use .json or .yaml/.yml.")


def load_config_file(path: str) -> Dict[str, Any]:
    data = read_structured_file(path)
    if not isinstance(data, dict):
        raise ValueError("Config file must be a mapping at top level.")
    return data


def _merge_dict(base: Dict[str, Any], override: Dict[str, Any], section: str) -> Dict[str, Any]:
    unknown = set(override) - set(base)
    if unknown:
        raise ValueError(f"Unknown keys in '{section}' section: {sorted(unknown)}")
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def build_runtime_config(raw: Dict[str, Any], base: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge an external config onto the defaults.

    Sections may be lower- or upper-case ("optimizer" or "OPTIMIZER").
    Unknown sections raise ValueError.
    """
    config = copy.deepcopy(base) if base is not None else get_config()

    for key, value in raw.items():
        section = key.lower()
        if section not in config:
            raise ValueError(f"Unknown config section: {key}")
        if not isinstance(value, dict):
            raise ValueError(f"Config section '{key}' must be a mapping.")
        config[section] = _merge_dict(config[section], value, section)

    return config


def resolve_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return `config` if given, else the engine defaults."""
    return config if config is not None else get_config()
