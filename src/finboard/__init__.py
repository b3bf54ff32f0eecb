"""Personal finance dashboard API: statement ingestion and summaries."""

__version__ = "0.1.0"
