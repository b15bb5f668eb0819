"""State management errors."""


class StateError(Exception):
    """Base exception for metadata store operations."""


class MetadataStoreError(StateError):
    """Raised when a metadata document cannot be read or written."""
