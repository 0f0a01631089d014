"""
Command-line interface for the analysis tool.

This module provides CLI commands for writing the full market stability
report and printing the per-country and regional summary tables.
"""

import argparse
import logging
import sys
import pandas as pd
from market_stability.analytics.summary import (
    RANKABLE_FIELDS, compute_regional_summary, compute_summary,
    rank_summaries, summaries_to_frame
)
from market_stability.config import load_config
from market_stability.data_sources.returns import load_dataset_from_config
from market_stability.errors import AnalysisError
from market_stability.reporting.report import Report


def positive_int(value: str) -> int:
    """Parse a command-line value that must be an integer of at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def report_command(args):
    """Load the configured data and write the markdown report."""
    config = load_config(args.config)
    output_dir = args.output or config.output_dir

    print(f"Loading return data for {', '.join(config.recognised_regions)}...")
    dataset = load_dataset_from_config(config)
    print(f"  {len(dataset)} observations, {len(dataset.countries)} countries")
    if config.excluded_countries:
        print(f"  Excluded: {', '.join(config.excluded_countries)}")

    print("  Generating report...")
    report = Report(output_dir=output_dir, top_n=config.top_n, rolling_window=config.rolling_window)
    report_path = report.generate_report(dataset, regions=config.recognised_regions)

    print(f"\n✓ Analysis complete!")
    print(f"  Report saved to: {report_path}")


def summary_command(args):
    """Print per-country summary statistics ranked by one field."""
    config = load_config(args.config)
    dataset = load_dataset_from_config(config)

    ranked = rank_summaries(
        compute_summary(dataset),
        by=args.sort_by,
        ascending=not args.descending,
        top_n=args.top
    )
    if ranked.empty:
        print("No return data available")
        return

    with pd.option_context("display.float_format", "{:.3f}".format, "display.width", 160):
        print(ranked.to_string(index=False))


def regions_command(args):
    """Print the regional summary table."""
    config = load_config(args.config)
    dataset = load_dataset_from_config(config)

    frame = summaries_to_frame(compute_regional_summary(dataset, regions=config.recognised_regions))
    if frame.empty:
        print("No regional data available")
        return

    with pd.option_context("display.float_format", "{:.3f}".format, "display.width", 160):
        print(frame.to_string(index=False))


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Regional Equity Market Stability",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", default=None, help="Path to analysis YAML (default: data/analysis.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    report_parser = subparsers.add_parser("report", help="Write the full markdown report")
    report_parser.add_argument("--output", default=None, help="Output directory (default: from config)")

    summary_parser = subparsers.add_parser("summary", help="Print ranked per-country statistics")
    summary_parser.add_argument(
        "--sort-by", default="coef_variation", choices=RANKABLE_FIELDS[:7],
        help="Statistic to rank by (default: coef_variation)"
    )
    summary_parser.add_argument("--descending", action="store_true", help="Rank highest first")
    summary_parser.add_argument("--top", type=positive_int, default=None, help="Show only the first N rows")

    subparsers.add_parser("regions", help="Print regional statistics")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    commands = {
        "report": report_command,
        "summary": summary_command,
        "regions": regions_command,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        commands[args.command](args)
    except AnalysisError as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
