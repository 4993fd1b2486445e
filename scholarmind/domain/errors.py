"""Errors raised by the study data store and its repositories."""

from __future__ import annotations


class DataStoreError(Exception):
    """Base class for data store failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DataStoreError):
    """Raised for empty/malformed input or a dangling subject reference."""


class DuplicateError(DataStoreError):
    """Raised when a subject name is already taken."""


class NotFoundError(DataStoreError):
    """Raised when an operation targets an id that does not exist."""


class NotReadyError(DataStoreError):
    """Raised when a mutation is attempted before the initial load finished."""


class PersistenceError(DataStoreError):
    """Raised when the key-value storage fails to read or write."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key
