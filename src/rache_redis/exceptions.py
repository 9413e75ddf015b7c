"""rache-redis exceptions."""


class RacheError(Exception):
    """Base exception for rache-redis."""

    pass


class ConfigError(RacheError):
    """Configuration error."""

    pass


class BackendNotFoundError(RacheError, ValueError):
    """No connection backend registered under the requested name."""

    pass


class ConnectionNotReadyError(RacheError):
    """The backing-store connection is not connected."""

    pass


class UnencodableValueError(RacheError, ValueError):
    """A cache value has no representation in the backing store."""

    pass
