"""Custom exceptions for the market stability package."""


class AnalysisError(Exception):
    """Base exception for market stability errors."""
    pass


class DataError(AnalysisError):
    """Raised when return data is missing, invalid, or inconsistent."""
    pass


class ConfigError(AnalysisError):
    """Raised when the analysis configuration cannot be loaded or is invalid."""
    pass
