"""Exceptions raised by :mod:`cache_sessions`."""


class ConfigurationError(ValueError):
    """Session options could not be resolved to a usable configuration."""


class IdentifierConstructionError(RuntimeError):
    """A session identifier could not be constructed."""


class CacheUnavailableError(RuntimeError):
    """The session cache failed to read, write, or delete an entry."""
