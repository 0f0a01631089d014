"""
Regional Equity Market Stability

A research tool for summarising historical annual equity-index returns of
individual countries against their regional benchmarks: stability, returns,
streaks, rolling returns, correlations and benchmark outperformance.
"""

__version__ = "0.1.0"
