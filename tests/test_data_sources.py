"""
Tests for loading return data and configuration from disk.

Tests cover:
- CSV header normalisation and benchmark filling
- Missing files, missing columns and non-numeric returns
- Concatenation of regions and exclusion of countries
- YAML configuration loading and validation
- The bundled sample data
"""

import pytest
import tempfile
from pathlib import Path
import pandas as pd
from market_stability.config import AnalysisConfig, load_config
from market_stability.data_sources.returns import (
    normalize_column_name, load_returns_csv, load_dataset, load_dataset_from_config
)
from market_stability.errors import ConfigError, DataError


ASIA_CSV = """Country,Benchmark,Year,Country Return,Benchmark Return,Difference,Outperformed
India,Asia8,2020,15.0,10.0,5.0,TRUE
India,Asia8,2021,5.0,8.0,-3.0,FALSE
Japan,Asia8,2020,8.0,10.0,-2.0,FALSE
Japan,Asia8,2021,12.0,8.0,4.0,TRUE
"""

EURO_CSV = """country,year,country_return,benchmark_return
France,2020,-4.0,-2.0
France,2021,20.0,15.0
Russia,2020,-10.0,-2.0
Russia,2021,18.0,15.0
"""


def _write(directory: Path, name: str, content: str) -> Path:
    path = directory / name
    path.write_text(content)
    return path


class TestNormalizeColumnName:
    """Tests for normalize_column_name."""

    def test_normalization(self):
        """Test header case, spacing and dashes are normalised."""
        assert normalize_column_name("Country Return") == "country_return"
        assert normalize_column_name("  Benchmark-Return ") == "benchmark_return"
        assert normalize_column_name("year") == "year"


class TestLoadReturnsCsv:
    """Tests for load_returns_csv."""

    def test_load_with_display_headers(self):
        """Test loading a CSV with human-readable headers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "asia.csv", ASIA_CSV)
            df = load_returns_csv(path)

            assert "country_return" in df.columns
            assert "outperformed" in df.columns
            assert len(df) == 4

    def test_benchmark_filled_from_label(self):
        """Test that a file without benchmark column takes the region label."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "euro.csv", EURO_CSV)
            df = load_returns_csv(path, benchmark="Euro7")
            assert set(df["benchmark"]) == {"Euro7"}

    def test_missing_benchmark_without_label_raises(self):
        """Test that a file without benchmark and no label raises DataError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "euro.csv", EURO_CSV)
            with pytest.raises(DataError, match="Missing required columns"):
                load_returns_csv(path)

    def test_missing_file_raises(self):
        """Test that a missing file raises DataError."""
        with pytest.raises(DataError, match="not found"):
            load_returns_csv("does/not/exist.csv")

    def test_non_numeric_return_raises(self):
        """Test that a non-numeric return raises DataError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(
                Path(tmpdir), "bad.csv",
                "country,benchmark,year,country_return,benchmark_return\nIndia,Asia8,2020,abc,1.0\n"
            )
            with pytest.raises(DataError, match="Non-numeric country_return"):
                load_returns_csv(path)


class TestLoadDataset:
    """Tests for load_dataset."""

    def test_concatenate_and_exclude(self):
        """Test loading two regions and excluding a country."""
        with tempfile.TemporaryDirectory() as tmpdir:
            asia = _write(Path(tmpdir), "asia.csv", ASIA_CSV)
            euro = _write(Path(tmpdir), "euro.csv", EURO_CSV)

            ds = load_dataset({"Asia8": asia, "Euro7": euro}, excluded=["Russia"])

            assert ds.countries == ["France", "India", "Japan"]
            assert ds.benchmarks == ["Asia8", "Euro7"]
            assert len(ds) == 6

    def test_outperformed_parsed_from_file(self):
        """Test that TRUE/FALSE columns become booleans."""
        with tempfile.TemporaryDirectory() as tmpdir:
            asia = _write(Path(tmpdir), "asia.csv", ASIA_CSV)
            frame = load_dataset({"Asia8": asia}).frame

            india = frame[frame["country"] == "India"]
            assert list(india["outperformed"]) == [True, False]

    def test_outperformed_derived_when_absent(self):
        """Test that outperformed is derived for files without it."""
        with tempfile.TemporaryDirectory() as tmpdir:
            euro = _write(Path(tmpdir), "euro.csv", EURO_CSV)
            frame = load_dataset({"Euro7": euro}).frame

            france = frame[frame["country"] == "France"]
            assert list(france["difference"]) == pytest.approx([-2.0, 5.0])
            assert list(france["outperformed"]) == [False, True]


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_config(self):
        """Test loading a YAML configuration with relative paths."""
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            _write(tmp, "asia.csv", ASIA_CSV)
            _write(tmp, "euro.csv", EURO_CSV)
            config_path = _write(tmp, "analysis.yaml", (
                "regions:\n"
                "  Asia8: asia.csv\n"
                "  Euro7: euro.csv\n"
                "excluded_countries:\n"
                "  - Russia\n"
                "rolling_window: 5\n"
            ))

            config = load_config(str(config_path))

            assert config.recognised_regions == ["Asia8", "Euro7"]
            assert config.regions["Asia8"] == tmp / "asia.csv"
            assert config.excluded_countries == ["Russia"]
            assert config.rolling_window == 5
            assert config.top_n == 5

            ds = load_dataset_from_config(config)
            assert "Russia" not in ds.countries

    def test_missing_file_raises(self):
        """Test that a missing config file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_config("does/not/exist.yaml")

    def test_missing_regions_raises(self):
        """Test that a config without regions raises ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "analysis.yaml", "top_n: 3\n")
            with pytest.raises(ConfigError, match="regions"):
                load_config(str(path))

    def test_invalid_yaml_raises(self):
        """Test that unparsable YAML raises ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "analysis.yaml", "regions: [unclosed\n")
            with pytest.raises(ConfigError, match="Failed to parse"):
                load_config(str(path))

    def test_invalid_window_raises(self):
        """Test that a non-positive rolling window raises ConfigError."""
        with pytest.raises(ConfigError, match="rolling_window"):
            AnalysisConfig(regions={"Asia8": Path("asia.csv")}, rolling_window=0)


class TestSampleData:
    """Tests against the bundled sample data."""

    def test_default_config_loads(self):
        """Test that the bundled configuration and CSVs load cleanly."""
        config = load_config()
        ds = load_dataset_from_config(config)

        assert ds.benchmarks == ["Asia8", "Euro7"]
        assert "Russia" not in ds.countries
        assert len(ds.countries) == 15
