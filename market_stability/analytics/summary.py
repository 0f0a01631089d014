"""
Grouped summary statistics of annual returns.

This module reduces the yearly observations of a Dataset to per-country and
per-region summaries (mean, median, dispersion, risk-adjusted return, share of
positive years, benchmark outperformance), following functional programming
principles: every function returns a fresh projection of its input.

Undefined values (a zero denominator, a single observation) are NaN,
never a clamped or infinite number.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union
import pandas as pd
from market_stability.entities import as_dataset


RANKABLE_FIELDS = (
    "mean_return",
    "median_return",
    "std_dev",
    "coef_variation",
    "sharpe_ratio",
    "pos_years_pct",
    "n_years",
    "outperformance_rate",
    "n_countries",
    "years_outperformed",
    "mean_difference",
)

# Means within this fraction of the largest absolute return are treated as zero
ZERO_TOLERANCE = 1e-12


@dataclass(frozen=True)
class CountrySummary:
    """
    Summary statistics of one country's annual returns.

    Attributes:
        country: Country name
        benchmark: Benchmark the country is assigned to
        mean_return: Average annual return (percent)
        median_return: Median annual return (percent)
        std_dev: Sample standard deviation (n-1); NaN for a single year
        coef_variation: std_dev / |mean_return|; NaN when mean_return == 0
        sharpe_ratio: mean_return / std_dev; NaN when std_dev == 0
        pos_years_pct: Percent of years with a strictly positive return
        n_years: Number of observations
    """
    country: str
    benchmark: str
    mean_return: float
    median_return: float
    std_dev: float
    coef_variation: float
    sharpe_ratio: float
    pos_years_pct: float
    n_years: int


@dataclass(frozen=True)
class RegionalSummary:
    """
    Summary statistics pooled over every observation of one benchmark region.

    Attributes are those of CountrySummary, plus:
        outperformance_rate: Percent of pooled observations that beat the benchmark
        n_countries: Number of countries contributing observations
    """
    benchmark: str
    mean_return: float
    median_return: float
    std_dev: float
    coef_variation: float
    sharpe_ratio: float
    pos_years_pct: float
    n_years: int
    outperformance_rate: float
    n_countries: int


@dataclass(frozen=True)
class OutperformanceRecord:
    """How often, and by how much, a country beat its benchmark."""
    country: str
    benchmark: str
    years_outperformed: int
    n_years: int
    outperformance_rate: float
    mean_difference: float


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning NaN when either side is undefined or the denominator is zero."""
    if pd.isna(numerator) or pd.isna(denominator) or denominator == 0:
        return float("nan")
    return float(numerator / denominator)


def describe_returns(returns: Iterable[float]) -> Dict[str, float]:
    """
    Compute the summary statistics of a sequence of annual returns.

    Preconditions:
        - returns holds no missing values

    Postconditions:
        - pos_years_pct is in [0, 100] (NaN for an empty sequence)
        - std_dev and everything derived from it are NaN when fewer than 2 returns
        - std_dev is exactly 0 when every return is identical
        - mean_return is exactly 0 when it is within ZERO_TOLERANCE of the
          largest absolute return

    Args:
        returns: Annual returns in percent

    Returns:
        Dictionary with mean_return, median_return, std_dev, coef_variation,
        sharpe_ratio, pos_years_pct and n_years
    """
    values = pd.Series(list(returns), dtype=float)
    n = len(values)

    mean = float(values.mean()) if n else float("nan")
    median = float(values.median()) if n else float("nan")
    std = float(values.std(ddof=1)) if n > 1 else float("nan")

    # Rounding residue of a zero mean or zero spread counts as exactly zero
    if n and abs(mean) <= ZERO_TOLERANCE * float(values.abs().max()):
        mean = 0.0
    if n > 1 and values.nunique() == 1:
        std = 0.0

    # Strict inequality: a zero return is not a positive year
    pos_pct = float((values > 0).sum() / n * 100) if n else float("nan")

    return {
        "mean_return": mean,
        "median_return": median,
        "std_dev": std,
        "coef_variation": safe_ratio(std, abs(mean)),
        "sharpe_ratio": safe_ratio(mean, std),
        "pos_years_pct": pos_pct,
        "n_years": n,
    }


def compute_summary(dataset) -> Dict[Tuple[str, str], CountrySummary]:
    """
    Compute per-country summary statistics.

    Preconditions:
        - dataset is a Dataset, DataFrame, or iterable of Observation records

    Postconditions:
        - One entry per (country, benchmark) pair present in the dataset
        - The input is not modified
        - An empty dataset yields an empty dict

    Args:
        dataset: Yearly return observations

    Returns:
        Dictionary mapping (country, benchmark) to CountrySummary
    """
    df = as_dataset(dataset).frame

    summaries = {}
    for (country, benchmark), group in df.groupby(["country", "benchmark"], sort=True):
        summaries[(country, benchmark)] = CountrySummary(
            country=country,
            benchmark=benchmark,
            **describe_returns(group["country_return"]),
        )
    return summaries


def compute_regional_summary(
    dataset,
    regions: Optional[Iterable[str]] = None
) -> Dict[str, RegionalSummary]:
    """
    Compute summary statistics grouped by benchmark region.

    Observations are pooled across the region's countries, so countries with
    more years weigh more heavily. The outperformance rate is the pooled share
    of observations that beat the benchmark, not a mean of per-country rates.

    Args:
        dataset: Yearly return observations
        regions: Recognised benchmark labels; other labels are excluded.
            If None, every benchmark present is treated as a region.

    Returns:
        Dictionary mapping benchmark label to RegionalSummary
    """
    ds = as_dataset(dataset)
    if regions is not None:
        ds = ds.restrict_to_benchmarks(regions)
    df = ds.frame

    summaries = {}
    for benchmark, group in df.groupby("benchmark", sort=True):
        n = len(group)
        summaries[benchmark] = RegionalSummary(
            benchmark=benchmark,
            **describe_returns(group["country_return"]),
            outperformance_rate=float(group["outperformed"].sum() / n * 100),
            n_countries=int(group["country"].nunique()),
        )
    return summaries


def compute_outperformance(dataset) -> Dict[str, OutperformanceRecord]:
    """
    Compute how often each country outperformed its benchmark.

    Args:
        dataset: Yearly return observations

    Returns:
        Dictionary mapping country to OutperformanceRecord
    """
    df = as_dataset(dataset).frame

    records = {}
    for (country, benchmark), group in df.groupby(["country", "benchmark"], sort=True):
        n = len(group)
        wins = int(group["outperformed"].sum())
        records[country] = OutperformanceRecord(
            country=country,
            benchmark=benchmark,
            years_outperformed=wins,
            n_years=n,
            outperformance_rate=wins / n * 100,
            mean_difference=float(group["difference"].mean()),
        )
    return records


def summaries_to_frame(summaries: Mapping) -> pd.DataFrame:
    """
    Flatten a mapping of summary records into a DataFrame, one row per key.

    Args:
        summaries: Output of compute_summary, compute_regional_summary
            or compute_outperformance

    Returns:
        DataFrame with one column per record field
    """
    if not summaries:
        return pd.DataFrame()
    return pd.DataFrame([asdict(record) for record in summaries.values()])


def rank_summaries(
    summaries: Union[Mapping, pd.DataFrame],
    by: str,
    ascending: bool = True,
    top_n: Optional[int] = None
) -> pd.DataFrame:
    """
    Sort summaries by one statistic for presentation.

    Rows whose statistic is undefined (NaN) always sort last, whatever the
    direction. Ties between defined values are broken by name (ascending).

    Examples:
        - Most stable: by="coef_variation", ascending=True
        - Best performing: by="mean_return", ascending=False
        - Worst risk-adjusted: by="sharpe_ratio", ascending=True

    Args:
        summaries: Summary mapping or a frame from summaries_to_frame
        by: Field to sort on
        ascending: Sort direction for defined values
        top_n: Keep only the first top_n rows

    Returns:
        Sorted DataFrame with a fresh 0..n-1 index

    Raises:
        ValueError: If `by` is not a rankable field of the summaries, or
            top_n is not positive
    """
    if by not in RANKABLE_FIELDS:
        raise ValueError(f"cannot rank by {by!r}; expected one of {RANKABLE_FIELDS}")
    if top_n is not None and top_n < 1:
        raise ValueError(f"top_n must be a positive integer, got {top_n!r}")

    frame = summaries if isinstance(summaries, pd.DataFrame) else summaries_to_frame(summaries)
    if frame.empty:
        return frame.copy()
    if by not in frame.columns:
        raise ValueError(f"summaries have no field {by!r}")

    name_col = "country" if "country" in frame.columns else "benchmark"
    undefined = frame[by].isna()

    defined_rows = frame[~undefined].sort_values(
        [by, name_col], ascending=[ascending, True], kind="mergesort"
    )
    undefined_rows = frame[undefined].sort_values(name_col, kind="mergesort")

    parts = [part for part in (defined_rows, undefined_rows) if not part.empty]
    ranked = pd.concat(parts, ignore_index=True)

    if top_n is not None:
        ranked = ranked.head(top_n).reset_index(drop=True)
    return ranked
