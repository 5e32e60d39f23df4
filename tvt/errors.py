"""Exceptions that surface to callers as hard failures.

Everything else (configuration gaps, provider outages, cache misses) is
reported through warning lists instead of exceptions.
"""


class StorageError(Exception):
    """A read or write against the result/selection store failed."""


class StorageUnavailableError(StorageError):
    """The configured store cannot be used at all (e.g. missing credentials)."""


class CaptainSelectionError(Exception):
    """A captain selection submission was rejected."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSelectionError(CaptainSelectionError):
    status_code = 400


class SelectionConflictError(CaptainSelectionError):
    """A selection already exists for the (gw, matchup, side) key."""

    status_code = 409


class SelectionStorageError(CaptainSelectionError):
    status_code = 500


class SelectionStorageUnavailableError(CaptainSelectionError):
    status_code = 503
