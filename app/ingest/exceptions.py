class SheetFeedError(Exception):
    """Base class for every error the ingestion pipeline reports to an operator."""


class EmptyInputError(SheetFeedError):
    """The source produced no data rows."""

    def __init__(self, message='The workbook contains no data in any sheets.'):
        super().__init__(message)


class FetchError(SheetFeedError):
    """The source could not be retrieved."""


class NotPublishedError(FetchError):
    """The source answered with an HTML page instead of CSV.

    Almost always means the sheet is not "Published to Web" as CSV.
    """

    def __init__(self, message="Sheet not 'Published to Web' as CSV."):
        super().__init__(message)


class OracleError(SheetFeedError):
    """The duplicate check could not reach a decision for a row."""


class StoreError(SheetFeedError):
    """Generic storage backend failure."""


class SyncInProgressError(SheetFeedError):
    def __init__(self, message='A sync is already running.'):
        super().__init__(message)


class AuthError(SheetFeedError):
    """Missing, unknown or inactive credential on the read API."""

    def __init__(self, message, status=403):
        super().__init__(message)
        self.status = status
