"""Data layer utilities for loading JSON definitions and storing saves."""

from .errors import (
    CorruptSaveError,
    DataError,
    DataLoadError,
    DataReferenceError,
    DataValidationError,
    SaveStoreError,
)
from .paths import get_definitions_path, get_repo_root

__all__ = [
    "CorruptSaveError",
    "DataError",
    "DataLoadError",
    "DataReferenceError",
    "DataValidationError",
    "SaveStoreError",
    "get_definitions_path",
    "get_repo_root",
]
