"""
Annual return data sources.

This module reads the regional return tables (one CSV per benchmark region)
from disk, normalises their headers, and assembles them into a single
validated Dataset with excluded countries removed.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Union
import pandas as pd
from market_stability.config import AnalysisConfig
from market_stability.entities import Dataset, REQUIRED_COLUMNS, concat_datasets
from market_stability.errors import DataError

logger = logging.getLogger(__name__)


def normalize_column_name(name: str) -> str:
    """Normalise a CSV header, e.g. "Country Return" -> "country_return"."""
    return "_".join(str(name).strip().lower().replace("-", " ").split())


def load_returns_csv(csv_path: Union[str, Path], benchmark: Optional[str] = None) -> pd.DataFrame:
    """
    Load one regional return table from a CSV file.

    Expected CSV columns (header case and spacing are ignored):
        - country: Country name
        - benchmark: Benchmark label (optional if `benchmark` is given)
        - year: Calendar year
        - country_return: Annual country return (percent)
        - benchmark_return: Annual benchmark return (percent)
        - difference: country_return - benchmark_return (optional)
        - outperformed: TRUE/FALSE (optional)

    Preconditions:
        - csv_path points to a readable CSV file

    Postconditions:
        - Returned frame has normalised column names
        - Returns are numeric

    Args:
        csv_path: Path to CSV file
        benchmark: Benchmark label used when the file has no benchmark column

    Returns:
        DataFrame of raw observations

    Raises:
        DataError: If the file doesn't exist, lacks required columns,
            or holds non-numeric returns
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise DataError(f"Return data CSV not found: {csv_file}")

    try:
        df = pd.read_csv(csv_file)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataError(f"Failed to read return data from {csv_file}: {e}") from e

    df.columns = [normalize_column_name(c) for c in df.columns]

    if "benchmark" not in df.columns and benchmark is not None:
        df["benchmark"] = benchmark

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise DataError(f"Missing required columns in {csv_file.name}: {missing_cols}")

    for col in ("country_return", "benchmark_return"):
        values = pd.to_numeric(df[col], errors="coerce")
        bad = values.isna() & df[col].notna()
        if bad.any():
            raise DataError(
                f"Non-numeric {col} in {csv_file.name}: {df.loc[bad, col].tolist()[:5]}"
            )
        df[col] = values

    logger.debug("Loaded %d rows from %s", len(df), csv_file)
    return df


def load_dataset(
    paths_by_region: Dict[str, Union[str, Path]],
    excluded: Iterable[str] = ()
) -> Dataset:
    """
    Load every regional table, concatenate them and drop excluded countries.

    Args:
        paths_by_region: Mapping of benchmark label to CSV path
        excluded: Countries removed from scope

    Returns:
        Validated Dataset

    Raises:
        DataError: If any file fails to load or the combined data is inconsistent
    """
    datasets = []
    for label, csv_path in paths_by_region.items():
        frame = load_returns_csv(csv_path, benchmark=label)
        datasets.append(Dataset(frame))

    combined = concat_datasets(*datasets)

    excluded = list(excluded)
    if excluded:
        before = len(combined)
        combined = combined.exclude(excluded)
        logger.info(
            "Excluded %d observations for %s", before - len(combined), ", ".join(excluded)
        )

    logger.info(
        "Dataset ready: %d observations, %d countries", len(combined), len(combined.countries)
    )
    return combined


def load_dataset_from_config(config: AnalysisConfig) -> Dataset:
    """Load the Dataset described by an AnalysisConfig."""
    return load_dataset(config.regions, excluded=config.excluded_countries)
