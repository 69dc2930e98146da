"""Exceptions raised by DevTask."""

from typing import Optional


class DevTaskError(Exception):
    """Base class for DevTask errors."""


class StoreError(DevTaskError):
    """The entity store could not be read or written."""


class ReportGenerationError(DevTaskError):
    """Fetching entities for a report failed.

    The underlying failure is kept on :attr:`cause` and is also chained as
    ``__cause__`` by the code raising this error.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
