"""
Core entity classes (ADTs) for the market stability package.

These classes represent the yearly return observations every analytic in
the package consumes, with strong encapsulation and representation invariants.
"""

import math
from dataclasses import dataclass, asdict
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple, Union
import pandas as pd
import numpy as np
from market_stability.errors import DataError


OBSERVATION_COLUMNS = [
    "country",
    "benchmark",
    "year",
    "country_return",
    "benchmark_return",
    "difference",
    "outperformed",
]
REQUIRED_COLUMNS = OBSERVATION_COLUMNS[:5]

_TRUE_STRINGS = {"true", "t", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0"}


def _is_real_number(value) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, (bool, np.bool_))


@dataclass(frozen=True)
class Observation:
    """
    One (country, year) data point.

    Attributes:
        country: Country identifier (e.g., "India")
        benchmark: Regional benchmark the country belongs to (e.g., "Asia8")
        year: Calendar year
        country_return: Annual return of the country index, in percent
        benchmark_return: Annual return of the benchmark in the same year, in percent
        difference: country_return - benchmark_return (derived when omitted)
        outperformed: difference > 0 (derived when omitted)

    Representation Invariants:
        - country and benchmark are non-empty
        - year is an integer
        - country_return and benchmark_return are finite numbers
    """
    country: str
    benchmark: str
    year: int
    country_return: float
    benchmark_return: float
    difference: Optional[float] = None
    outperformed: Optional[bool] = None

    def __post_init__(self):
        """Validate representation invariants and fill derived fields."""
        if not self.country:
            raise ValueError("country cannot be empty")
        if not self.benchmark:
            raise ValueError("benchmark cannot be empty")
        if not _is_real_number(self.year) or int(self.year) != self.year:
            raise ValueError(f"year must be an integer, got {self.year!r}")

        for name in ("country_return", "benchmark_return"):
            value = getattr(self, name)
            if not _is_real_number(value) or not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")

        # Frozen dataclass: derived fields are set through object.__setattr__
        object.__setattr__(self, "year", int(self.year))
        object.__setattr__(self, "country_return", float(self.country_return))
        object.__setattr__(self, "benchmark_return", float(self.benchmark_return))

        if self.difference is None:
            object.__setattr__(self, "difference", self.country_return - self.benchmark_return)
        else:
            object.__setattr__(self, "difference", float(self.difference))

        if self.outperformed is None:
            object.__setattr__(self, "outperformed", self.difference > 0)
        else:
            object.__setattr__(self, "outperformed", bool(self.outperformed))


def _to_flag(value) -> Optional[bool]:
    """Coerce an outperformance cell to bool, or None when it is missing."""
    if value is None:
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if _is_real_number(value):
        if isinstance(value, (float, np.floating)) and math.isnan(value):
            return None
        if value in (0, 1):
            return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "":
            return None
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise DataError(f"invalid outperformed value: {value!r}")


class Dataset:
    """
    An immutable collection of yearly return Observations.

    This is an ADT wrapping a pandas DataFrame with one row per observation.
    The wrapped frame is never exposed directly; accessors return copies.

    Representation Invariants:
        - all OBSERVATION_COLUMNS are present
        - country, benchmark, year, country_return and benchmark_return are never null
        - at most one row per (country, year)
        - every country maps to exactly one benchmark
        - outperformed is a boolean column
        - rows are sorted by (country, year)
    """

    def __init__(self, frame: pd.DataFrame):
        """
        Initialize a Dataset.

        Preconditions:
            - frame has at least the REQUIRED_COLUMNS

        Postconditions:
            - the caller's frame is not modified
            - missing difference / outperformed cells are derived from the returns

        Raises:
            DataError: If any representation invariant is violated
        """
        if not isinstance(frame, pd.DataFrame):
            raise TypeError("frame must be a pd.DataFrame")

        missing_cols = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
        if missing_cols:
            raise DataError(f"Missing required columns: {missing_cols}")

        df = frame.loc[:, [c for c in OBSERVATION_COLUMNS if c in frame.columns]].copy()
        if "difference" not in df.columns:
            df["difference"] = np.nan
        if "outperformed" not in df.columns:
            df["outperformed"] = None

        if df[["country", "benchmark", "year"]].isna().any().any():
            raise DataError("country, benchmark and year cannot be missing")

        df["country"] = df["country"].astype(str).str.strip()
        df["benchmark"] = df["benchmark"].astype(str).str.strip()
        if ((df["country"] == "") | (df["benchmark"] == "")).any():
            raise DataError("country and benchmark cannot be empty")

        years = pd.to_numeric(df["year"], errors="coerce")
        if years.isna().any() or (years % 1 != 0).any():
            raise DataError("year must be an integer")
        df["year"] = years.astype("int64")

        for col in ("country_return", "benchmark_return"):
            values = pd.to_numeric(df[col], errors="coerce").astype(float)
            if values.isna().any() or np.isinf(values).any():
                raise DataError(f"{col} must be a finite number in every row")
            df[col] = values

        computed = df["country_return"] - df["benchmark_return"]
        difference = pd.to_numeric(df["difference"], errors="coerce").astype(float)
        df["difference"] = difference.where(difference.notna(), computed)

        flags = [_to_flag(v) for v in df["outperformed"]]
        df["outperformed"] = pd.Series(
            [d > 0 if f is None else f for f, d in zip(flags, df["difference"])],
            index=df.index,
            dtype=bool,
        )

        duplicated = df.duplicated(["country", "year"], keep=False)
        if duplicated.any():
            dups = df.loc[duplicated, ["country", "year"]].drop_duplicates()
            pairs = [f"{c} {y}" for c, y in dups.itertuples(index=False)]
            raise DataError(f"Duplicate (country, year) observations: {pairs[:5]}")

        n_benchmarks = df.groupby("country")["benchmark"].nunique()
        conflicting = n_benchmarks[n_benchmarks > 1]
        if len(conflicting) > 0:
            raise DataError(
                f"Countries assigned to more than one benchmark: {sorted(conflicting.index)}"
            )

        self._frame = df.sort_values(["country", "year"]).reset_index(drop=True)

    @classmethod
    def from_observations(cls, records: Iterable[Union[Observation, Mapping]]) -> "Dataset":
        """
        Build a Dataset from Observation instances or Observation-shaped mappings.

        Args:
            records: Iterable of Observation objects or dicts with Observation keys

        Returns:
            Dataset
        """
        rows = [asdict(r) if isinstance(r, Observation) else dict(r) for r in records]
        if not rows:
            return cls(pd.DataFrame(columns=OBSERVATION_COLUMNS))
        return cls(pd.DataFrame(rows))

    @property
    def frame(self) -> pd.DataFrame:
        """Return a copy of the observations as a DataFrame."""
        return self._frame.copy()

    @property
    def countries(self) -> List[str]:
        """Return the sorted list of countries present."""
        return sorted(self._frame["country"].unique())

    @property
    def benchmarks(self) -> List[str]:
        """Return the sorted list of benchmark labels present."""
        return sorted(self._frame["benchmark"].unique())

    @property
    def year_range(self) -> Optional[Tuple[int, int]]:
        """Return (first_year, last_year) across all countries, or None if empty."""
        if self._frame.empty:
            return None
        return int(self._frame["year"].min()), int(self._frame["year"].max())

    def benchmark_of(self, country: str) -> str:
        """Return the benchmark a country is assigned to."""
        matches = self._frame.loc[self._frame["country"] == country, "benchmark"]
        if matches.empty:
            raise KeyError(f"unknown country: {country}")
        return matches.iloc[0]

    def returns_for(self, country: str) -> pd.Series:
        """Return a country's returns as a Series indexed by year, ascending."""
        rows = self._frame[self._frame["country"] == country].sort_values("year")
        return pd.Series(
            rows["country_return"].values,
            index=pd.Index(rows["year"].values, name="year"),
            name=country,
        )

    def exclude(self, countries: Iterable[str]) -> "Dataset":
        """Return a new Dataset without the given countries."""
        excluded = set(countries)
        return Dataset(self._frame[~self._frame["country"].isin(excluded)])

    def restrict_to_benchmarks(self, labels: Iterable[str]) -> "Dataset":
        """Return a new Dataset holding only the given benchmark labels."""
        keep = set(labels)
        return Dataset(self._frame[self._frame["benchmark"].isin(keep)])

    def __len__(self) -> int:
        """Return the number of observations."""
        return len(self._frame)

    def __iter__(self) -> Iterator[Observation]:
        """Iterate over the observations as Observation objects."""
        for row in self._frame.itertuples(index=False):
            yield Observation(
                country=row.country,
                benchmark=row.benchmark,
                year=int(row.year),
                country_return=float(row.country_return),
                benchmark_return=float(row.benchmark_return),
                difference=float(row.difference),
                outperformed=bool(row.outperformed),
            )

    def __repr__(self) -> str:
        """String representation."""
        return f"Dataset({len(self)} obs, {len(self.countries)} countries)"


def as_dataset(data) -> Dataset:
    """
    Coerce a Dataset, DataFrame, or iterable of records into a Dataset.

    Args:
        data: Dataset, pd.DataFrame, or iterable of Observation / mappings

    Returns:
        Dataset (the same object when data is already a Dataset)
    """
    if isinstance(data, Dataset):
        return data
    if isinstance(data, pd.DataFrame):
        return Dataset(data)
    return Dataset.from_observations(data)


def concat_datasets(*datasets: Dataset) -> Dataset:
    """
    Concatenate several datasets into one, re-checking all invariants.

    Raises:
        DataError: If the union has duplicate (country, year) rows or a
            country appears under two benchmarks
    """
    frames = [d.frame for d in datasets if len(d) > 0]
    if not frames:
        return Dataset.from_observations([])
    return Dataset(pd.concat(frames, ignore_index=True))
