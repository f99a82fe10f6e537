"""
config_loader.py
-----------------
Reads config/config.yaml once per process and hands out its blocks:

    recurring_detection  default thresholds for the series gates
                         (occurrence count, span, skipped months, day window)
    ingestion            CSV loading defaults (currency symbol, date format,
                         required columns)
    worker               thread pool sizing for the async detection worker

The detection block only supplies defaults. Per-call overrides are merged
on top of it by recurrence.options.DetectionOptions.resolve().
"""

import os
import yaml
from typing import Any, Dict


_CONFIG_CACHE: Dict[str, Any] = {}


def load_config(config_path: str | None = None) -> Dict[str, Any]:
    """
    Load and cache the YAML configuration file.

    The first call wins: later calls return the cached dict, whatever
    config_path they pass, until reset_config() is called.

    Args:
        config_path: Path to config.yaml. Defaults to config/ relative to this file.

    Returns:
        Full config dictionary (empty for an empty file).
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE:
        return _CONFIG_CACHE

    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "config.yaml")

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    # Currency symbols such as "€" live in the ingestion block.
    with open(config_path, "r", encoding="utf-8") as f:
        _CONFIG_CACHE = yaml.safe_load(f) or {}

    return _CONFIG_CACHE


def _required_block(name: str) -> Dict[str, Any]:
    config = load_config()
    if name not in config:
        available = sorted(config)
        raise KeyError(f"Config block '{name}' not found. Available: {available}")
    return config[name]


def get_recurring_detection_config() -> Dict[str, Any]:
    """
    Returns the recurring_detection block: min_occurrences, the span bounds,
    max_skipped_months, the day window and its flex, and grouping_substrings.
    """
    return _required_block("recurring_detection")


def get_ingestion_config() -> Dict[str, Any]:
    """Returns the ingestion block (currency default, date format, required CSV columns)."""
    return _required_block("ingestion")


def get_worker_config() -> Dict[str, Any]:
    """Returns the worker block. A missing block leaves the executor at its own defaults."""
    return load_config().get("worker") or {}


def reset_config() -> None:
    """Clears cached config so the next accessor re-reads config.yaml. Used by tests."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = {}
