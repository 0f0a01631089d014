"""
Analysis configuration.

The configuration lives in a YAML file (``data/analysis.yaml`` by default)
that names the regional benchmark files, the countries removed from scope
and a few presentation settings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import yaml
from market_stability.errors import ConfigError


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "data" / "analysis.yaml"


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Settings for one analysis run.

    Attributes:
        regions: Mapping of benchmark label to the CSV file holding its countries
        excluded_countries: Countries removed from scope before any statistic is computed
        rolling_window: Window (years) for trailing annualized returns
        top_n: Number of rows shown in ranked report tables
        output_dir: Directory reports are written to

    Representation Invariants:
        - regions is non-empty
        - rolling_window > 0
        - top_n > 0
    """
    regions: Dict[str, Path]
    excluded_countries: List[str] = field(default_factory=list)
    rolling_window: int = 3
    top_n: int = 5
    output_dir: str = "reports"

    def __post_init__(self):
        """Validate representation invariants."""
        if not self.regions:
            raise ConfigError("at least one region must be configured")
        if not isinstance(self.rolling_window, int) or self.rolling_window <= 0:
            raise ConfigError(f"rolling_window must be a positive integer, got {self.rolling_window!r}")
        if not isinstance(self.top_n, int) or self.top_n <= 0:
            raise ConfigError(f"top_n must be a positive integer, got {self.top_n!r}")

    @property
    def recognised_regions(self) -> List[str]:
        """Benchmark labels treated as regions in regional aggregation."""
        return list(self.regions.keys())


def load_config(path: Optional[str] = None) -> AnalysisConfig:
    """
    Load analysis configuration from a YAML file.

    Expected keys:
        - regions: mapping of benchmark label -> CSV path (required)
        - excluded_countries: list of country names (optional)
        - rolling_window: int (optional, default 3)
        - top_n: int (optional, default 5)
        - output_dir: str (optional, default "reports")

    Relative CSV paths are resolved against the directory of the YAML file.

    Args:
        path: Path to YAML file. If None, uses data/analysis.yaml.

    Returns:
        AnalysisConfig

    Raises:
        ConfigError: If the file is missing, unparsable, or invalid
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping, got {type(raw).__name__}")

    regions = raw.get("regions")
    if not isinstance(regions, dict) or not regions:
        raise ConfigError("Config must define a non-empty 'regions' mapping")

    base_dir = config_path.parent
    resolved = {}
    for label, csv_path in regions.items():
        csv_file = Path(str(csv_path))
        if not csv_file.is_absolute():
            csv_file = base_dir / csv_file
        resolved[str(label)] = csv_file

    excluded = raw.get("excluded_countries") or []
    if not isinstance(excluded, list):
        raise ConfigError("'excluded_countries' must be a list")

    return AnalysisConfig(
        regions=resolved,
        excluded_countries=[str(c) for c in excluded],
        rolling_window=raw.get("rolling_window", 3),
        top_n=raw.get("top_n", 5),
        output_dir=str(raw.get("output_dir", "reports")),
    )
