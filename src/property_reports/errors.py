"""Custom exceptions for the reporting package."""


class ReportError(Exception):
    """Base exception for report-related errors."""

    pass


class UnknownReportError(ReportError):
    """Raised when a report key is not registered in the catalog."""

    pass


class DatabaseNotReadyError(ReportError):
    """
    Raised when reports are requested against an unusable datastore.

    This can happen when:
    - The database file does not exist
    - The property_sales table was never created (nothing ingested)
    """

    pass


class IngestionError(ReportError):
    """
    Raised when a source file cannot be loaded at all.

    Row-level validation failures are not raised; they go to the rejects file.
    """

    pass
