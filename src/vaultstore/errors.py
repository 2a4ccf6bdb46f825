"""Custom exceptions for vaultstore.

Library code raises these; the CLI catches ``VaultError``, logs it and
exits with status 1. Resources that already exist on create are not
errors at all (see ``CreateOutcome``).
"""


class VaultError(RuntimeError):
    """Base class for all vaultstore errors."""
    pass


class MissingDependencyError(VaultError):
    """A provider SDK package is not installed."""

    def __init__(self, package: str, purpose: str):
        self.package = package
        super().__init__(
            f"{package} required for {purpose}. "
            f"Install with: pip install {package}"
        )


class AuthError(VaultError):
    """Authentication or authorization with the provider failed."""
    pass


class NotFoundError(VaultError):
    """A local file or remote blob does not exist."""
    pass


class RemoteError(VaultError):
    """Provider-side failure (quota, naming collision, transfer, ...)."""
    pass


class BlobNotFoundError(NotFoundError, RemoteError):
    """Remote blob absent on read."""

    def __init__(self, container: str, blob_name: str):
        self.container = container
        self.blob_name = blob_name
        super().__init__(f"Blob not found: {container}/{blob_name}")


class UsageError(VaultError):
    """Wrong number or shape of command arguments."""
    pass


class ConfigError(VaultError):
    """Invalid or missing configuration."""
    pass
