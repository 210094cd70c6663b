"""
ledger_config: single public entrypoint for runtime settings.

Responsibility:
    ``get_active_config()`` is the only way to obtain settings at runtime.
    Services never read files or environment variables; they receive
    module config objects built by ``ledger_config.bridges``.

Failure modes:
    - ``FileNotFoundError``: the requested settings file does not exist.
    - ``ValueError``: unknown section or key, or a value of the wrong type.
"""

from __future__ import annotations

from pathlib import Path

from ledger_config.bridges import (
    build_inventory_config,
    build_payroll_config,
    build_sales_config,
    engine_options,
    logging_options,
)
from ledger_config.loader import load_yaml_file, merge_settings, parse_settings
from ledger_config.schema import LedgerSettings
from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> LedgerSettings:
    """
    Load the default settings, overlay ``config_path`` if given, and
    return the validated ``LedgerSettings``.

    Emits a ``config_loaded`` INFO line carrying the settings checksum.
    """
    data = load_yaml_file(DEFAULT_SETTINGS_PATH)
    if config_path is not None:
        data = merge_settings(data, load_yaml_file(Path(config_path)))
    settings = parse_settings(data)
    logger.info(
        "config_loaded",
        extra={
            "config_path": str(config_path or DEFAULT_SETTINGS_PATH),
            "checksum": settings.checksum,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "LedgerSettings",
    "build_inventory_config",
    "build_payroll_config",
    "build_sales_config",
    "engine_options",
    "logging_options",
    "get_active_config",
]
