"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``StockCardConfig``.
The public runtime entry point is ``stock_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen ``StockCardConfig``.
* Unknown keys are rejected, never silently ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import StockCardConfig
from stock_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_config(data: dict[str, Any], source: str = "<dict>") -> StockCardConfig:
    """
    Parse a ``StockCardConfig`` from a dict.

    The settings may sit at the top level or under a ``stock_card`` key.
    Missing keys take the schema defaults.

    Raises:
        ConfigurationError: on unknown keys or invalid values.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(source, ["settings file must contain a mapping"])
    settings = data.get("stock_card", data)
    if not isinstance(settings, dict):
        raise ConfigurationError(source, ["stock_card must be a mapping"])

    unknown = sorted(set(settings) - StockCardConfig.field_names())
    if unknown:
        raise ConfigurationError(source, [f"unknown setting: {k}" for k in unknown])

    values = dict(settings)
    try:
        if "default_opening_balance_date" in values:
            values["default_opening_balance_date"] = parse_date(
                values["default_opening_balance_date"]
            )
        return StockCardConfig(**values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(source, [str(e)]) from e


def load_config_file(path: Path) -> StockCardConfig:
    """Load and parse a YAML settings file."""
    return parse_config(load_yaml_file(path), source=str(path))


def compute_checksum(config: StockCardConfig) -> str:
    """
    Deterministic SHA-256 of the configuration's canonical JSON form.

    Postconditions:
        Identical settings always produce the same 64-char hex digest.
    """
    canonical = json.dumps(asdict(config), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
