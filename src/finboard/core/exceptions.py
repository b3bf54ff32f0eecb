"""Custom exception classes for statement ingestion.

Every exception carries an error_code that maps to the catalog in
errors.py. Malformed rows and duplicate source identifiers are not
errors and never raise.
"""

from typing import Any


class FinanceError(Exception):
    """Base exception for all dashboard errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "DB_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class IngestionError(FinanceError):
    """Raised when an import request cannot be processed.

    This covers client-side problems with the submitted payload that
    survive schema validation (INGEST_001).
    """

    pass


class StorageError(FinanceError):
    """Raised when the store is unreachable or a write fails.

    Surfaced as a single failure for the whole ingestion call. Retrying
    the call is safe because every record write is keyed uniquely.
    """

    pass
