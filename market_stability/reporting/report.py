"""
Markdown report generation.

This module generates markdown reports ranking country equity markets by
stability, return, risk-adjusted return and benchmark outperformance, with
streaks, rolling returns, regional comparisons and correlations.
"""

import logging
import math
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional
import pandas as pd
from market_stability.analytics.correlation import compute_correlation_matrix, top_correlated_pairs
from market_stability.analytics.rolling import compute_rolling_returns
from market_stability.analytics.streaks import compute_streaks
from market_stability.analytics.summary import (
    compute_outperformance, compute_regional_summary, compute_summary,
    rank_summaries, summaries_to_frame
)
from market_stability.entities import Dataset, as_dataset
from market_stability.reporting.charts import (
    plot_stability_ranking, plot_rolling_returns, plot_correlation_heatmap,
    plot_outperformance, create_report_assets_dir
)

logger = logging.getLogger(__name__)


def fmt(value, spec: str = ".2f", suffix: str = "") -> str:
    """Format a number for a markdown table, rendering undefined values as n/a."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:{spec}}{suffix}"


class Report:
    """
    Generates markdown reports with market stability results.

    This class computes every derived table from a Dataset and assembles them
    into a markdown report with charts.
    """

    def __init__(self, output_dir: str = "reports", top_n: int = 5, rolling_window: int = 3):
        """
        Initialize report generator.

        Args:
            output_dir: Directory to save reports
            top_n: Rows shown in ranked tables
            rolling_window: Window (years) for trailing annualized returns
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.top_n = top_n
        self.rolling_window = rolling_window

    def generate_report(
        self,
        dataset,
        title: str = "Regional Equity Market Stability",
        regions: Optional[Iterable[str]] = None
    ) -> str:
        """
        Generate complete markdown report.

        Args:
            dataset: Yearly return observations (Dataset, DataFrame or records)
            title: Report title
            regions: Benchmark labels treated as regions (default: all present)

        Returns:
            Path to generated report file
        """
        ds = as_dataset(dataset)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        slug = re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_") or "report"
        report_path = self.output_dir / f"{slug}_{timestamp}.md"

        assets_dir = create_report_assets_dir(self.output_dir)

        summaries = compute_summary(ds)

        content = self._generate_header(title, ds)
        content += self._generate_stability_section(summaries, assets_dir)
        content += self._generate_performance_section(summaries)
        content += self._generate_risk_adjusted_section(summaries)
        content += self._generate_outperformance_section(ds, assets_dir)
        content += self._generate_streak_section(ds)
        content += self._generate_rolling_section(ds, assets_dir)
        content += self._generate_regional_section(ds, regions)
        content += self._generate_correlation_section(ds, assets_dir)
        content += self._generate_footer()

        with open(report_path, "w") as f:
            f.write(content)

        logger.info("Report written to %s", report_path)
        return str(report_path)

    def _save_chart(self, plot: Callable[[str], None], chart_path: Path, caption: str) -> str:
        """Render one chart; a chart that fails is logged and left out of the report."""
        try:
            plot(str(chart_path))
        except (ValueError, TypeError, OSError) as e:
            logger.warning("Could not render chart %s: %s", chart_path.name, e)
            return ""
        return f"![{caption}](assets/{chart_path.name})\n\n"

    def _generate_header(self, title: str, dataset: Dataset) -> str:
        """Generate report header."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        year_range = dataset.year_range
        period = f"{year_range[0]}-{year_range[1]}" if year_range else "n/a"
        benchmarks = ", ".join(dataset.benchmarks) or "n/a"

        return f"""# {title}

**Countries:** {len(dataset.countries)}
**Benchmarks:** {benchmarks}
**Period:** {period}
**Observations:** {len(dataset)}
**Generated:** {timestamp}

---

"""

    def _summary_table(self, ranked: pd.DataFrame) -> str:
        """Render ranked per-country summaries as a markdown table."""
        table = "| Rank | Country | Benchmark | Mean (%) | Median (%) | Std Dev | CV | Sharpe | Positive Years | Years |\n"
        table += "|------|---------|-----------|----------|------------|---------|----|--------|----------------|-------|\n"
        for rank, row in enumerate(ranked.itertuples(index=False), start=1):
            table += (
                f"| {rank} | {row.country} | {row.benchmark} | {fmt(row.mean_return)} "
                f"| {fmt(row.median_return)} | {fmt(row.std_dev)} | {fmt(row.coef_variation, '.3f')} "
                f"| {fmt(row.sharpe_ratio, '.3f')} | {fmt(row.pos_years_pct, '.1f', '%')} | {row.n_years} |\n"
            )
        return table + "\n"

    def _generate_stability_section(self, summaries, assets_dir: Path) -> str:
        """Generate most-stable-markets section."""
        section = "## Most Stable Markets\n\n"

        if not summaries:
            return section + "*No return data available.*\n\n---\n\n"

        section += "> **Coefficient of variation** is the standard deviation of annual returns "
        section += "divided by the absolute mean return. Lower values mean steadier returns "
        section += "relative to their average. Countries with an undefined value (zero mean "
        section += "return or a single year of data) are listed last.\n\n"

        ranked = rank_summaries(summaries, by="coef_variation", ascending=True)
        section += self._summary_table(ranked.head(self.top_n))

        section += self._save_chart(
            lambda path: plot_stability_ranking(ranked, path),
            assets_dir / "stability_ranking.png",
            "Stability Ranking",
        )
        return section + "---\n\n"

    def _generate_performance_section(self, summaries) -> str:
        """Generate best-performing-markets section."""
        section = "## Best Performing Markets\n\n"

        if not summaries:
            return section + "*No return data available.*\n\n---\n\n"

        ranked = rank_summaries(summaries, by="mean_return", ascending=False, top_n=self.top_n)
        section += self._summary_table(ranked)
        return section + "---\n\n"

    def _generate_risk_adjusted_section(self, summaries) -> str:
        """Generate worst-risk-adjusted-markets section."""
        section = "## Worst Risk-Adjusted Markets\n\n"

        if not summaries:
            return section + "*No return data available.*\n\n---\n\n"

        section += "> **Sharpe-like ratio** is the mean annual return divided by its standard "
        section += "deviation (no risk-free rate is subtracted). The lowest ratios are shown first.\n\n"

        ranked = rank_summaries(summaries, by="sharpe_ratio", ascending=True, top_n=self.top_n)
        section += self._summary_table(ranked)
        return section + "---\n\n"

    def _generate_outperformance_section(self, dataset: Dataset, assets_dir: Path) -> str:
        """Generate benchmark outperformance section."""
        section = "## Benchmark Outperformance\n\n"

        records = compute_outperformance(dataset)
        if not records:
            return section + "*No return data available.*\n\n---\n\n"

        ranked = rank_summaries(records, by="outperformance_rate", ascending=False)

        section += "| Country | Benchmark | Years Outperformed | Years | Rate | Mean Excess Return (%) |\n"
        section += "|---------|-----------|--------------------|-------|------|------------------------|\n"
        for row in ranked.itertuples(index=False):
            section += (
                f"| {row.country} | {row.benchmark} | {row.years_outperformed} | {row.n_years} "
                f"| {fmt(row.outperformance_rate, '.1f', '%')} | {fmt(row.mean_difference)} |\n"
            )
        section += "\n"

        section += self._save_chart(
            lambda path: plot_outperformance(ranked, path),
            assets_dir / "outperformance.png",
            "Benchmark Outperformance",
        )
        return section + "---\n\n"

    def _generate_streak_section(self, dataset: Dataset) -> str:
        """Generate streak section."""
        section = "## Streaks\n\n"

        streaks = compute_streaks(dataset)
        if not streaks:
            return section + "*No return data available.*\n\n---\n\n"

        section += "> Longest run of consecutive years with a non-negative return (a 0% year "
        section += "extends a positive streak) and longest run of consecutive negative years.\n\n"

        ordered = sorted(
            streaks.values(),
            key=lambda s: (-s.max_positive_streak, s.max_negative_streak, s.country)
        )
        section += "| Country | Longest Positive Streak | Longest Negative Streak |\n"
        section += "|---------|-------------------------|-------------------------|\n"
        for record in ordered:
            section += f"| {record.country} | {record.max_positive_streak} | {record.max_negative_streak} |\n"
        return section + "\n---\n\n"

    def _generate_rolling_section(self, dataset: Dataset, assets_dir: Path) -> str:
        """Generate rolling annualized return section."""
        window = self.rolling_window
        section = f"## Rolling {window}-Year Annualized Returns\n\n"

        rolling = compute_rolling_returns(dataset, window=window)
        if rolling.empty or rolling.columns.empty:
            return section + "*No return data available.*\n\n---\n\n"

        latest_year = rolling.index.max()
        section += f"> Geometric mean of the trailing {window} annual returns. The first years of "
        section += "the period use the shorter history available; any window touching a year "
        section += "without data is left undefined.\n\n"

        section += f"| Country | {latest_year} Annualized (%) | Best (%) | Worst (%) |\n"
        section += "|---------|------------------|----------|-----------|\n"
        for country in rolling.columns:
            series = rolling[country]
            section += (
                f"| {country} | {fmt(float(series.loc[latest_year]))} "
                f"| {fmt(float(series.max()))} | {fmt(float(series.min()))} |\n"
            )
        section += "\n"

        section += self._save_chart(
            lambda path: plot_rolling_returns(rolling, window, path),
            assets_dir / "rolling_returns.png",
            "Rolling Returns",
        )
        return section + "---\n\n"

    def _generate_regional_section(self, dataset: Dataset, regions: Optional[Iterable[str]]) -> str:
        """Generate regional comparison section."""
        section = "## Regional Comparison\n\n"

        regional = compute_regional_summary(dataset, regions=regions)
        if not regional:
            return section + "*No regional data available.*\n\n---\n\n"

        section += "> Statistics pool every country-year in the region. The outperformance rate "
        section += "is the share of all pooled country-years that beat the regional benchmark, "
        section += "so countries with longer histories weigh more.\n\n"

        frame = summaries_to_frame(regional)
        section += "| Region | Countries | Years | Mean (%) | Std Dev | CV | Sharpe | Positive Years | Outperformance |\n"
        section += "|--------|-----------|-------|----------|---------|----|--------|----------------|----------------|\n"
        for row in frame.itertuples(index=False):
            section += (
                f"| {row.benchmark} | {row.n_countries} | {row.n_years} | {fmt(row.mean_return)} "
                f"| {fmt(row.std_dev)} | {fmt(row.coef_variation, '.3f')} | {fmt(row.sharpe_ratio, '.3f')} "
                f"| {fmt(row.pos_years_pct, '.1f', '%')} | {fmt(row.outperformance_rate, '.1f', '%')} |\n"
            )
        return section + "\n---\n\n"

    def _generate_correlation_section(self, dataset: Dataset, assets_dir: Path) -> str:
        """Generate correlation section."""
        section = "## Correlation of Annual Returns\n\n"

        matrix = compute_correlation_matrix(dataset)
        if len(matrix) < 2:
            return section + "*At least two countries are needed for correlations.*\n\n---\n\n"

        section += "> Pearson correlation over the years both countries have data. Pairs "
        section += "sharing fewer than two years are undefined.\n\n"

        for label, ascending in (("Most Correlated", False), ("Least Correlated", True)):
            pairs = top_correlated_pairs(matrix, n=self.top_n, ascending=ascending)
            section += f"### {label} Pairs\n\n"
            if not pairs:
                section += "*No pair has enough overlapping years.*\n\n"
                continue
            section += "| Pair | Correlation |\n"
            section += "|------|-------------|\n"
            for first, second, value in pairs:
                section += f"| {first}-{second} | {value:.3f} |\n"
            section += "\n"

        section += self._save_chart(
            lambda path: plot_correlation_heatmap(matrix, path),
            assets_dir / "correlation_heatmap.png",
            "Correlation Heatmap",
        )
        return section + "---\n\n"

    def _generate_footer(self) -> str:
        """Generate report footer."""
        return f"""
## Methodology Notes

### Summary Statistics
- Returns are annual percentage returns of each country's equity index
- Standard deviation uses the sample (n-1) denominator; undefined for a single year
- Coefficient of variation = std / |mean|; undefined when the mean return is exactly 0
- Sharpe-like ratio = mean / std; undefined when returns never vary
- Positive years count strictly positive returns (a 0% year is not positive)

### Streaks
- Years are walked in chronological order
- A 0% year counts as non-negative and extends a positive streak, unlike the
  positive-years percentage above

### Rolling Returns
- {self.rolling_window}-year trailing geometric mean, right-aligned
- Every country is placed on the same first-to-last year axis; years without data are gaps

### Benchmark Outperformance
- A year is outperformed when the country return exceeds its regional benchmark return
- Regional rates pool all country-years rather than averaging per-country rates

---

*Report generated by Regional Equity Market Stability*
"""
