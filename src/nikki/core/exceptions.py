"""
Nikki exception hierarchy.

All nikki exceptions inherit from NikkiError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.

Query operations never raise for empty input, blank queries or inverted
date ranges; those are defined as empty results.
"""


class NikkiError(Exception):
    """Base exception class for all nikki errors."""


class ConfigurationError(NikkiError):
    """Raised for configuration errors (missing keys, invalid values)."""


class StorageError(NikkiError):
    """Base class for failures reported by the journal store."""


class StorageUnavailableError(StorageError):
    """Raised when the storage engine cannot be opened or is closed.

    Fatal to every store operation until the caller opens the database again.
    """


class EntryNotFoundError(StorageError, LookupError):
    """Raised when updating a record that does not exist."""

    def __init__(self, entry_id: str, partition: str = "entries"):
        if partition == "entries":
            message = f"Entry not found: {entry_id}"
        else:
            message = f"Record not found in {partition}: {entry_id}"
        super().__init__(message)
        self.entry_id = entry_id
        self.partition = partition


class WriteConflictError(StorageError):
    """Raised when a generated id collides with an existing record.

    Recoverable: the caller may retry, which generates a new id.
    """

    def __init__(self, record_id: str, partition: str = "entries"):
        super().__init__(f"Record id already exists in {partition}: {record_id}")
        self.record_id = record_id
        self.partition = partition
