"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "INGEST_001": {
        "code": "INGEST_001",
        "message": "Import request contained no statement content",
        "user_message": "We couldn't find any statement data to import.",
        "suggestion": "Please select at least one exported statement file.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request payload failed validation",
        "user_message": "Invalid input data",
        "suggestion": "Please check your input and try again",
        "retry_allowed": True,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "We couldn't reach your saved data due to a database error.",
        "suggestion": "Please try again in a few moments. Repeating the import is safe.",
        "retry_allowed": True,
    },
    "DB_003": {
        "code": "DB_003",
        "message": "Database is unreachable",
        "user_message": "Your data can't be saved right now.",
        "suggestion": "Imports will not be kept until the connection is restored.",
        "retry_allowed": True,
    },
    "DB_004": {
        "code": "DB_004",
        "message": "Import did not finish before the configured timeout",
        "user_message": "Saving your statement took too long.",
        "suggestion": "Please try again. Rows already saved will not be duplicated.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Unknown codes resolve to a generic retryable error instead of raising.
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]
