"""
Tests for chart generation.

Tests cover:
- Chart files written to disk
- Figures closed when saving fails
"""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
import numpy as np
import pandas as pd
from market_stability.reporting.charts import (
    plot_stability_ranking, plot_rolling_returns, plot_correlation_heatmap,
    plot_outperformance, create_report_assets_dir
)


RANKED = pd.DataFrame({
    "country": ["Japan", "India", "China"],
    "coef_variation": [0.4, 0.9, np.nan],
})
ROLLING = pd.DataFrame(
    {"Japan": [5.0, 6.0, np.nan], "India": [8.0, 7.5, 9.0]},
    index=[2020, 2021, 2022],
)
MATRIX = pd.DataFrame(
    [[1.0, 0.3], [0.3, 1.0]], index=["India", "Japan"], columns=["India", "Japan"]
)
RATES = pd.DataFrame({
    "country": ["India", "France"],
    "benchmark": ["Asia8", "Euro7"],
    "outperformance_rate": [60.0, 40.0],
})

CHARTS = [
    lambda path: plot_stability_ranking(RANKED, path),
    lambda path: plot_rolling_returns(ROLLING, 3, path),
    lambda path: plot_correlation_heatmap(MATRIX, path),
    lambda path: plot_outperformance(RATES, path),
]


class TestCharts:
    """Tests for chart functions."""

    @pytest.mark.parametrize("plot", CHARTS)
    def test_chart_written(self, plot):
        """Test that each chart writes a PNG and closes its figure."""
        open_before = len(plt.get_fignums())
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "chart.png"
            plot(str(path))

            assert path.exists()
        assert len(plt.get_fignums()) == open_before

    @pytest.mark.parametrize("plot", CHARTS)
    def test_figure_closed_when_save_fails(self, plot):
        """Test that a failed write propagates and leaves no figure open."""
        open_before = len(plt.get_fignums())
        with patch.object(Figure, "savefig", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                plot("unused.png")

        assert len(plt.get_fignums()) == open_before

    def test_create_report_assets_dir(self):
        """Test that the assets directory is created under the report directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assets = create_report_assets_dir(Path(tmpdir))
            assert assets == Path(tmpdir) / "assets"
            assert assets.is_dir()
