class StorageError(Exception):
    """Base exception for artifact store failures."""


class StorageWriteError(StorageError):
    """Raised when an artifact cannot be uploaded."""


class StorageReadError(StorageError):
    """Raised when an artifact cannot be downloaded."""
