from __future__ import annotations


class ObjectAccessError(IOError):
    """Raised when the object store cannot be reached or a fetch fails."""


class ObjectNotFoundError(ObjectAccessError):
    """Raised when the requested bucket/key does not exist."""


class RangeNotSupportedError(ObjectAccessError):
    """Raised when server rejects Range and object size > RANGE_FALLBACK_MAX."""


class ConfigurationError(ValueError):
    """Raised for invalid reader options, before any network access."""
