"""
Chart generation for reports.

This module creates matplotlib charts for return stability, rolling returns,
cross-country correlation and regional outperformance.
"""

from pathlib import Path
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd


def _save_figure(fig, save_path: str) -> None:
    """Write a figure to disk and close it, even when the write fails."""
    try:
        fig.tight_layout()
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)


def plot_stability_ranking(ranked: pd.DataFrame, save_path: str) -> None:
    """
    Plot coefficient of variation per country as a horizontal bar chart.

    Args:
        ranked: Ranked summary frame (see rank_summaries) with country and
            coef_variation columns; undefined values are skipped
        save_path: Path to save chart
    """
    data = ranked.dropna(subset=["coef_variation"])

    fig, ax = plt.subplots(figsize=(10, max(3, 0.45 * len(data) + 1)))

    ax.barh(data["country"], data["coef_variation"], color="steelblue", alpha=0.8)
    ax.invert_yaxis()

    ax.set_xlabel("Coefficient of Variation (std / |mean|)")
    ax.set_title("Return Stability by Country (lower is more stable)")
    ax.grid(True, alpha=0.3, axis="x")

    _save_figure(fig, save_path)


def plot_rolling_returns(rolling: pd.DataFrame, window: int, save_path: str) -> None:
    """
    Plot trailing annualized returns for every country on the common year axis.

    Args:
        rolling: Year x country frame from compute_rolling_returns
        window: Rolling window used (years), for labelling
        save_path: Path to save chart
    """
    fig, ax = plt.subplots(figsize=(12, 6))

    for country in rolling.columns:
        ax.plot(rolling.index, rolling[country].values, label=country, linewidth=1.5)

    ax.axhline(y=0, color="black", linestyle="--", alpha=0.3)
    ax.set_xlabel("Year")
    ax.set_ylabel(f"{window}-Year Annualized Return (%)")
    ax.set_title(f"Rolling {window}-Year Annualized Returns")
    ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5), fontsize="small")
    ax.grid(True, alpha=0.3)

    _save_figure(fig, save_path)


def plot_correlation_heatmap(matrix: pd.DataFrame, save_path: str) -> None:
    """
    Plot the country correlation matrix as a heatmap.

    Args:
        matrix: Square frame from compute_correlation_matrix
        save_path: Path to save chart
    """
    size = max(6, 0.6 * len(matrix) + 2)
    fig, ax = plt.subplots(figsize=(size, size))

    values = np.ma.masked_invalid(matrix.values.astype(float))
    image = ax.imshow(values, cmap="RdBu_r", vmin=-1, vmax=1)

    ax.set_xticks(np.arange(len(matrix.columns)))
    ax.set_yticks(np.arange(len(matrix.index)))
    ax.set_xticklabels(matrix.columns, rotation=45, ha="right")
    ax.set_yticklabels(matrix.index)
    ax.set_title("Correlation of Annual Returns")
    fig.colorbar(image, ax=ax, shrink=0.8, label="Pearson correlation")

    _save_figure(fig, save_path)


def plot_outperformance(rates: pd.DataFrame, save_path: str) -> None:
    """
    Plot the share of years each country beat its benchmark.

    Args:
        rates: Frame with country, benchmark and outperformance_rate columns
        save_path: Path to save chart
    """
    fig, ax = plt.subplots(figsize=(12, 6))

    benchmarks = sorted(rates["benchmark"].unique())
    colors = plt.cm.tab10(np.arange(len(benchmarks)) % 10)
    color_of = dict(zip(benchmarks, colors))

    x_pos = np.arange(len(rates))
    ax.bar(
        x_pos,
        rates["outperformance_rate"],
        color=[color_of[b] for b in rates["benchmark"]],
        alpha=0.8,
    )
    for benchmark in benchmarks:
        ax.bar([], [], color=color_of[benchmark], label=benchmark)

    ax.axhline(y=50, color="black", linestyle="--", alpha=0.3)
    ax.set_xticks(x_pos)
    ax.set_xticklabels(rates["country"], rotation=45, ha="right")
    ax.set_ylabel("Years Outperforming Benchmark (%)")
    ax.set_ylim(0, 100)
    ax.set_title("Benchmark Outperformance by Country")
    ax.legend()
    ax.grid(True, alpha=0.3, axis="y")

    _save_figure(fig, save_path)


def create_report_assets_dir(report_dir: Path) -> Path:
    """
    Create assets directory for report charts.

    Args:
        report_dir: Report directory path

    Returns:
        Path to assets directory
    """
    assets_dir = report_dir / "assets"
    assets_dir.mkdir(parents=True, exist_ok=True)
    return assets_dir
