"""
Tests for streak computation.

Tests cover:
- Streak splitting of ordered sequences
- Zero returns extending positive streaks
- Year ordering independent of input row order
- Streak lengths summing to the number of observations
"""

import pytest
import pandas as pd
from market_stability.entities import Dataset, Observation
from market_stability.analytics.streaks import streak_lengths, compute_streaks, StreakRecord


class TestStreakLengths:
    """Tests for streak_lengths."""

    def test_alternating_runs(self):
        """Test a sequence with runs of both signs."""
        positive, negative = streak_lengths([1.0, 2.0, -1.0, -2.0, -3.0, 4.0])
        assert positive == [2, 1]
        assert negative == [3]

    def test_zero_counts_as_non_negative(self):
        """Test that a 0% year extends a positive streak."""
        positive, negative = streak_lengths([5.0, 0.0, 3.0, -1.0])
        assert positive == [3]
        assert negative == [1]

    def test_all_negative(self):
        """Test a sequence of losses only."""
        positive, negative = streak_lengths([-1.0, -2.0])
        assert positive == []
        assert negative == [2]

    def test_empty(self):
        """Test that an empty sequence has no streaks."""
        assert streak_lengths([]) == ([], [])

    def test_lengths_sum_to_n(self):
        """Test that all streak lengths add up to the sequence length."""
        returns = [3.0, -1.0, 0.0, 0.0, -4.0, -2.0, 7.0, 8.0, -0.5, 1.0]
        positive, negative = streak_lengths(returns)
        assert sum(positive) + sum(negative) == len(returns)


class TestComputeStreaks:
    """Tests for compute_streaks."""

    def test_max_streaks(self):
        """Test longest positive and negative streak per country."""
        returns = [3.0, 4.0, 5.0, -1.0, 2.0, -3.0, -4.0]
        ds = Dataset.from_observations([
            Observation("India", "Asia8", 2010 + i, r, 0.0) for i, r in enumerate(returns)
        ])

        streaks = compute_streaks(ds)
        assert streaks["India"] == StreakRecord("India", 3, 2)

    def test_unsorted_input_is_sorted_by_year(self):
        """Test that row order does not change the result."""
        frame = pd.DataFrame({
            "country": ["Japan"] * 5,
            "benchmark": ["Asia8"] * 5,
            "year": [2004, 2000, 2003, 2001, 2002],
            "country_return": [-1.0, 1.0, -1.0, 2.0, 3.0],
            "benchmark_return": [0.0] * 5,
        })

        # Chronological order: 1, 2, 3, -1, -1
        streaks = compute_streaks(frame)
        assert streaks["Japan"].max_positive_streak == 3
        assert streaks["Japan"].max_negative_streak == 2

    def test_no_negative_years(self):
        """Test that a country without losses has a zero negative streak."""
        ds = Dataset.from_observations([
            Observation("Echo", "Euro7", 2020, 24.0, 0.0),
            Observation("Echo", "Euro7", 2021, 0.0, 0.0),
        ])
        assert compute_streaks(ds)["Echo"] == StreakRecord("Echo", 2, 0)

    def test_one_record_per_country(self):
        """Test that every country gets a record."""
        ds = Dataset.from_observations([
            Observation("India", "Asia8", 2020, 1.0, 0.0),
            Observation("France", "Euro7", 2020, -1.0, 0.0),
        ])
        streaks = compute_streaks(ds)
        assert set(streaks) == {"India", "France"}
        assert streaks["France"] == StreakRecord("France", 0, 1)

    def test_empty_dataset(self):
        """Test that an empty dataset has no streaks."""
        assert compute_streaks(Dataset.from_observations([])) == {}
