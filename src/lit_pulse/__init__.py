"""lit-pulse: literature ingestion and trend dashboard pipeline."""

__version__ = "0.1.0"
