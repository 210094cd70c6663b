"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into the typed
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Unknown sections, unknown keys and values of the wrong type raise
  ``ValueError`` naming the offending ``section.key``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` is a deterministic SHA-256 of the merged raw data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    DatabaseSettings,
    InventorySettings,
    LedgerSettings,
    LoggingSettings,
    PayrollSettings,
    SalesSettings,
)

_SECTIONS: dict[str, type] = {
    "database": DatabaseSettings,
    "logging": LoggingSettings,
    "sales": SalesSettings,
    "payroll": PayrollSettings,
    "inventory": InventorySettings,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge_settings(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``override`` onto ``base`` one section at a time."""
    merged = {name: dict(values or {}) for name, values in base.items()}
    for name, values in override.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValueError(f"section '{name}' must be a mapping")
        merged.setdefault(name, {}).update(values)
    return merged


def _check_type(section: str, key: str, value: Any, expected: str) -> None:
    # bool is an int subclass; keep the two apart
    if expected == "bool":
        ok = isinstance(value, bool)
    elif expected == "int":
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif expected == "str":
        ok = isinstance(value, str)
    else:
        raise ValueError(f"{section}.{key}: unsupported field type {expected}")
    if not ok:
        raise ValueError(
            f"{section}.{key}: expected {expected}, got {type(value).__name__} ({value!r})"
        )


def parse_section(name: str, data: dict[str, Any]):
    """Parse one settings section into its schema dataclass."""
    if name not in _SECTIONS:
        raise ValueError(f"unknown settings section '{name}'")
    cls = _SECTIONS[name]
    known = {f.name: f.type for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"{name}: unknown keys {', '.join(unknown)}")
    for key, value in data.items():
        _check_type(name, key, value, known[key])
    return cls(**data)


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse the merged raw settings into a ``LedgerSettings``.

    Sections left out keep their schema defaults.
    """
    sections = {name: parse_section(name, values or {}) for name, values in data.items()}
    if sections.get("logging") and sections["logging"].level.upper() not in _LOG_LEVELS:
        raise ValueError(f"logging.level: unknown level '{sections['logging'].level}'")
    return LedgerSettings(**sections, checksum=compute_checksum(data))


def compute_checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
