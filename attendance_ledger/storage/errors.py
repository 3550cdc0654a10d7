"""Exceptions raised by the ledger and voice sample stores."""


class StoreError(Exception):
    """Base class for storage failures surfaced to API callers."""

    status_code = 500


class StorageInitError(StoreError):
    """The ledger workbook could not be loaded or created."""


class PersistError(StoreError):
    """The ledger workbook could not be written after an append."""


class WriteError(StoreError):
    """A voice sample blob could not be written."""


class InvalidSampleName(StoreError):
    """A sample field would produce a filename outside the voice directory."""

    status_code = 400


class SampleNotFound(StoreError):
    """No stored voice sample matches the requested filename."""

    status_code = 404


class InvalidRecord(StoreError):
    """A record holds values the workbook cannot store."""

    status_code = 400
