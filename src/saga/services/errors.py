"""Service-layer exceptions."""


class SaveLoadError(Exception):
    """Raised when a save payload cannot be turned back into session state."""


class SchemaVersionMismatchError(SaveLoadError):
    """Raised when a save was written with a different schema version."""
