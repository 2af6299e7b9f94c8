"""Configuration for the regionizer pipeline."""

from .regionizer_config import RegionizerConfig, DEFAULT_THRESHOLD, MERGE_STRATEGY_NAMES

__all__ = [
    "RegionizerConfig",
    "DEFAULT_THRESHOLD",
    "MERGE_STRATEGY_NAMES",
]
