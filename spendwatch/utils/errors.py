"""Custom exceptions for the spending audit"""


class SpendWatchError(Exception):
    """Base exception for spending audit errors"""
    pass


class ConfigurationError(SpendWatchError):
    """Configuration loading errors"""
    pass


class DataSourceError(SpendWatchError):
    """Open-data portal request errors"""

    def __init__(self, message: str, source: str = "unknown"):
        self.source = source
        super().__init__(message)


class DataLoadError(SpendWatchError):
    """Local transaction file errors"""
    pass


class ExportError(SpendWatchError):
    """Report export errors"""
    pass
