"""
Cross-country correlation of annual returns.

Returns are pivoted to one row per year and one column per country. Each
pair is correlated on the years where both countries have a return
(pairwise-complete), so countries with different histories can still be
compared.
"""

from typing import List, Tuple
import numpy as np
import pandas as pd
from market_stability.analytics.rolling import reindex_years


MIN_OVERLAP = 2


def compute_correlation_matrix(dataset) -> pd.DataFrame:
    """
    Compute the pairwise-complete Pearson correlation matrix of country returns.

    Preconditions:
        - dataset is a Dataset, DataFrame, or iterable of Observation records

    Postconditions:
        - matrix.loc[a, b] == matrix.loc[b, a] exactly, for every pair
        - matrix.loc[a, a] == 1.0 when country a has at least 2 years
        - NaN where two countries share fewer than 2 years, or where one
          of them is constant over the shared years

    Args:
        dataset: Yearly return observations

    Returns:
        Square DataFrame indexed and columned by country (sorted)
    """
    returns = reindex_years(dataset)
    countries = list(returns.columns)
    matrix = pd.DataFrame(np.nan, index=countries, columns=countries, dtype=float)

    for i, first in enumerate(countries):
        if returns[first].count() >= MIN_OVERLAP:
            matrix.loc[first, first] = 1.0
        for second in countries[i + 1:]:
            # Each pair is computed once and mirrored so the matrix is exactly symmetric
            value = returns[first].corr(returns[second], min_periods=MIN_OVERLAP)
            matrix.loc[first, second] = value
            matrix.loc[second, first] = value

    return matrix


def top_correlated_pairs(
    matrix: pd.DataFrame,
    n: int = 5,
    ascending: bool = False
) -> List[Tuple[str, str, float]]:
    """
    List the most (or least) correlated distinct country pairs.

    Args:
        matrix: Output of compute_correlation_matrix
        n: Number of pairs to return
        ascending: If True, return the least correlated pairs first

    Returns:
        List of (country_a, country_b, correlation) with country_a < country_b,
        undefined correlations omitted
    """
    countries = list(matrix.index)
    pairs = []
    for i, first in enumerate(countries):
        for second in countries[i + 1:]:
            value = matrix.loc[first, second]
            if not pd.isna(value):
                pairs.append((first, second, float(value)))

    pairs.sort(key=lambda p: (p[2] if ascending else -p[2], p[0], p[1]))
    return pairs[:n]
