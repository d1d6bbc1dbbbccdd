"""Exception types raised by the client manager."""


class ClientManagerError(Exception):
    """Base class for errors that abort a single client operation."""


class ClientConfigError(ClientManagerError):
    """Dataset or node configuration is missing or invalid.

    Fatal to the operation that hit it, not to the process.
    """


class PatchCatalogError(ClientManagerError):
    """A patch catalog file is unreadable or internally inconsistent."""
