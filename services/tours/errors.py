"""
Errors raised by the tour sheet service.
"""


class TourSheetError(Exception):
    """Base class for every failure the tour service reports to callers."""


class ConfigurationError(TourSheetError):
    """The service is missing required configuration (e.g. the sheet URL)."""


class RemoteFetchError(TourSheetError):
    """The sheet could not be downloaded, or the response did not look like CSV."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedInputError(TourSheetError):
    """The CSV document as a whole is unusable (no header plus data row)."""
