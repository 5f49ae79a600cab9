"""
Registry Errors

One exception class per failure kind surfaced by the extension registry.
"""


class RegistryError(Exception):
    """Base class for all registry failures."""


class HostNotFoundError(RegistryError):
    """The host module could not be resolved."""


class ExtensionNotFoundError(RegistryError):
    """The extension module could not be resolved."""


class InvalidCandidateError(RegistryError):
    """A candidate was resolved but its base path is not on disk."""

    def __init__(self, message: str, base_path: str):
        super().__init__(message)
        self.base_path = base_path


class HostPathMissingError(HostNotFoundError, InvalidCandidateError):
    pass


class ExtensionPathMissingError(ExtensionNotFoundError, InvalidCandidateError):
    pass


class AlreadyEnabledError(RegistryError):
    """A link record already exists for the extension."""


class NotEnabledError(RegistryError):
    """No link record exists for the extension."""


# --- LinkStore level ---

class LinkStoreError(RegistryError):
    """A link file or the registry root could not be read or written."""


class LinkExistsError(RegistryError):
    pass


class LinkNotFoundError(RegistryError):
    pass
