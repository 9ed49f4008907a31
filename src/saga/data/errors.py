"""Custom exceptions for data loading, validation and save storage."""


class DataError(Exception):
    """Base exception for the data layer."""


class DataLoadError(DataError):
    """Raised when JSON files are missing or invalid."""


class DataValidationError(DataError):
    """Raised when JSON content fails structural validation."""


class DataReferenceError(DataError):
    """Raised when definitions reference missing related data."""


class SaveStoreError(Exception):
    """Raised when a save record cannot be read, written or deleted."""


class CorruptSaveError(SaveStoreError):
    """Raised when a stored record exists but cannot be parsed."""
