"""
Configuration for the regionizer pipeline.

Holds the color-distance threshold and the switches that select between
equivalent implementations of the merge and border passes.
"""

from dataclasses import dataclass
from typing import Dict, Any


DEFAULT_THRESHOLD = 5.0

MERGE_STRATEGY_NAMES = ("member_list", "disjoint_set")


@dataclass
class RegionizerConfig:
    """
    Configuration for region segmentation and border detection.

    Attributes:
        threshold: Maximum Lab distance for two neighbouring pixels to share a region
        merge_strategy: Row merge implementation ("member_list" or "disjoint_set")
        flag_scan_origin: Also flag the first pixel of every row and column
            (legacy output with a black left column and top row)
        parallel_border_passes: Run the row and column border passes concurrently
    """
    threshold: float = DEFAULT_THRESHOLD
    merge_strategy: str = "member_list"
    flag_scan_origin: bool = False
    parallel_border_passes: bool = False

    def __post_init__(self):
        """Validate configuration values."""
        self._validate()

    def _validate(self):
        """Validate all configuration values."""
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, (int, float)):
            raise ValueError(f"threshold must be a number, got {self.threshold!r}")

        if self.threshold != self.threshold or self.threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")

        if self.merge_strategy not in MERGE_STRATEGY_NAMES:
            raise ValueError(
                f"merge_strategy must be one of {', '.join(MERGE_STRATEGY_NAMES)}, "
                f"got {self.merge_strategy!r}"
            )

        self.threshold = float(self.threshold)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "threshold": self.threshold,
            "merge_strategy": self.merge_strategy,
            "flag_scan_origin": self.flag_scan_origin,
            "parallel_border_passes": self.parallel_border_passes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegionizerConfig":
        """Create from dictionary (e.g., from YAML config)."""
        return cls(
            threshold=data.get("threshold", DEFAULT_THRESHOLD),
            merge_strategy=data.get("merge_strategy", "member_list"),
            flag_scan_origin=bool(data.get("flag_scan_origin", False)),
            parallel_border_passes=bool(data.get("parallel_border_passes", False)),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "RegionizerConfig":
        """Load configuration from YAML file."""
        import yaml

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {yaml_path}")

        section = data.get("regionizer", data)
        if not isinstance(section, dict):
            raise ValueError(f"'regionizer' section must be a mapping: {yaml_path}")

        return cls.from_dict(section)

    @classmethod
    def default(cls) -> "RegionizerConfig":
        """Create default configuration."""
        return cls()

    def with_overrides(self, **overrides: Any) -> "RegionizerConfig":
        """
        Return a copy with the given fields replaced.

        Fields whose override value is None are left unchanged, so CLI
        options that were not given do not clobber values from a file.
        """
        data = self.to_dict()
        for key, value in overrides.items():
            if key not in data:
                raise ValueError(f"Unknown config field: {key}")
            if value is not None:
                data[key] = value
        return RegionizerConfig.from_dict(data)
