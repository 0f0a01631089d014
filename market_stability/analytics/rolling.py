"""
Trailing annualized (geometric mean) returns.

Every country is first placed on the dataset-wide contiguous year axis, with
NaN for the years it has no observation, so rolling series of different
countries line up row for row. A window that touches a missing year is
itself missing.
"""

import numpy as np
import pandas as pd
from market_stability.entities import as_dataset


def reindex_years(dataset) -> pd.DataFrame:
    """
    Pivot returns onto a common year axis.

    Postconditions:
        - Index is every year from the first to the last year in the dataset
        - One column per country, NaN where a country has no observation

    Args:
        dataset: Yearly return observations

    Returns:
        DataFrame indexed by year with one column of returns per country
    """
    ds = as_dataset(dataset)
    if ds.year_range is None:
        return pd.DataFrame(index=pd.Index([], name="year", dtype="int64"), dtype=float)

    first, last = ds.year_range
    pivot = ds.frame.pivot(index="year", columns="country", values="country_return")
    pivot = pivot.reindex(pd.Index(range(first, last + 1), name="year"))
    pivot.columns.name = None
    return pivot.astype(float)


def _check_window(window: int) -> None:
    if not isinstance(window, int) or window <= 0:
        raise ValueError("window must be a positive integer")


def _geometric_mean_return(window: np.ndarray) -> float:
    """Annualized return (percent) of a window of percent returns; NaN if any is missing."""
    growth = np.prod(1 + window / 100.0)
    return (growth ** (1.0 / len(window)) - 1) * 100.0


def compute_rolling_return(returns: pd.Series, window: int = 3) -> pd.Series:
    """
    Compute the trailing `window`-year annualized return at every position.

    The window is right-aligned and partial at the start: position i uses
    the min(window, i + 1) most recent returns, so the first value is the
    1-year return and the second the 2-year geometric mean.

    Preconditions:
        - returns is ordered by year ascending (gaps marked with NaN)
        - window > 0

    Postconditions:
        - Result has the same index and length as returns
        - A position whose window contains a NaN is NaN

    Args:
        returns: Annual returns in percent
        window: Number of trailing years

    Returns:
        Series of annualized returns in percent

    Raises:
        ValueError: If window is not a positive integer
    """
    _check_window(window)

    values = pd.Series(returns, dtype=float)
    if values.empty:
        return values.copy()

    return values.rolling(window=window, min_periods=1).apply(
        _geometric_mean_return, raw=True
    )


def compute_rolling_returns(dataset, window: int = 3) -> pd.DataFrame:
    """
    Compute trailing annualized returns for every country on a common year axis.

    Args:
        dataset: Yearly return observations
        window: Number of trailing years

    Returns:
        DataFrame indexed by year, one column per country
    """
    _check_window(window)
    returns = reindex_years(dataset)
    return pd.DataFrame(
        {country: compute_rolling_return(returns[country], window=window) for country in returns.columns},
        index=returns.index,
    )
