"""Market data ingestion and price alert evaluation engine."""

__version__ = "0.1.0"
