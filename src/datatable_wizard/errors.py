"""Exceptions raised by datatable-wizard.

Expected bad input (duplicate keys, missing mapping paths, invalid
configuration) is reported as data in result models. These exceptions cover
the few places that raise.
"""


class WizardError(Exception):
    """Base class for all datatable-wizard errors."""


class FormatError(WizardError):
    """A query string or JSON parameter list could not be parsed."""


class FetchError(WizardError):
    """An HTTP request to the configured API failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
