"""
Winning and losing streaks in annual returns.

A streak is a run of consecutive observations with the same sign. For streak
purposes a zero return counts as non-negative (a "positive" year), which
differs from the strict > 0 used by pos_years_pct in the summary statistics.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
from market_stability.entities import as_dataset


@dataclass(frozen=True)
class StreakRecord:
    """
    Longest runs of non-negative and negative years for one country.

    Attributes:
        country: Country name
        max_positive_streak: Longest run of consecutive years with return >= 0
        max_negative_streak: Longest run of consecutive years with return < 0
    """
    country: str
    max_positive_streak: int
    max_negative_streak: int


def streak_lengths(returns: Sequence[float]) -> Tuple[List[int], List[int]]:
    """
    Split a chronologically ordered return sequence into sign streaks.

    Preconditions:
        - returns is sorted by year ascending

    Postconditions:
        - sum of all returned lengths == len(returns)
        - streaks alternate in sign

    Args:
        returns: Annual returns in chronological order

    Returns:
        Tuple of (positive streak lengths, negative streak lengths), each in
        order of occurrence
    """
    positive: List[int] = []
    negative: List[int] = []

    current_sign = None
    current_length = 0
    for value in returns:
        sign = value >= 0
        if current_sign is None or sign != current_sign:
            if current_sign is not None:
                (positive if current_sign else negative).append(current_length)
            current_sign = sign
            current_length = 1
        else:
            current_length += 1

    if current_sign is not None:
        (positive if current_sign else negative).append(current_length)

    return positive, negative


def compute_streaks(dataset) -> Dict[str, StreakRecord]:
    """
    Compute the longest positive and negative streak for every country.

    Each country's observations are sorted by year before the walk; the
    streak result depends on that order, not on the input row order.

    Args:
        dataset: Yearly return observations

    Returns:
        Dictionary mapping country to StreakRecord (0 when no such streak)
    """
    df = as_dataset(dataset).frame

    streaks = {}
    for country, group in df.groupby("country", sort=True):
        ordered = group.sort_values("year")["country_return"].tolist()
        positive, negative = streak_lengths(ordered)
        streaks[country] = StreakRecord(
            country=country,
            max_positive_streak=max(positive, default=0),
            max_negative_streak=max(negative, default=0),
        )
    return streaks
