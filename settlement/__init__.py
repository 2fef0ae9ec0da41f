"""Transaction creation, scheduling and settlement server."""

__version__ = "0.1.0"
