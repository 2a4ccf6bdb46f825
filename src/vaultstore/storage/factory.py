"""Factory for creating provider instances from configuration."""

from pathlib import Path
from typing import Optional

from ..config import VaultConfig
from ..errors import ConfigError
from ..names_file import RecordedNames, read_names_file
from .azure import AzureBlobStore, AzureResourceProvider, parse_connection_string
from .base import BlobStore, ResourceProvider
from .fs import FilesystemBlobStore, FilesystemResourceProvider, parse_fs_uri


def make_resource_provider(config: VaultConfig) -> ResourceProvider:
    """
    Create the control-plane provider named by config.provider.

    Raises:
        ConfigError: If configuration is invalid
        MissingDependencyError: If the provider SDK is not installed
    """
    if config.provider == "azure":
        return AzureResourceProvider(config.subscription_id)

    elif config.provider == "fs":
        return FilesystemResourceProvider(Path(config.fs_root))

    else:
        raise ConfigError(f"Provider {config.provider} not supported")


def _account_from_credential(config: VaultConfig) -> Optional[str]:
    """Account name carried by the configured connection string, if any."""
    if not config.connection_string:
        return None
    if config.provider == "fs":
        return parse_fs_uri(config.connection_string).name or None
    return parse_connection_string(config.connection_string).get("AccountName") or None


def resolve_target(config: VaultConfig) -> RecordedNames:
    """
    Work out which account and container the blob commands act on.

    The account comes from, in order: an explicit account name, the
    account named in the connection string, the names recorded by the
    last provision run.

    Raises:
        ConfigError: If no storage account is known
    """
    recorded = read_names_file(Path(config.names_file))
    account_name = (
        config.account_name
        or _account_from_credential(config)
        or (recorded.account_name if recorded else None)
    )
    if not account_name:
        raise ConfigError(
            "No storage account configured. Set AZURE_STORAGE_ACCOUNT_NAME "
            "or AZURE_STORAGE_CONNECTION_STRING, or run 'vaultstore provision' first."
        )

    container = config.container
    resource_group = config.resource_group
    if recorded and recorded.account_name == account_name:
        if not config.is_explicit("container"):
            container = recorded.container
        if not config.is_explicit("resource_group"):
            resource_group = recorded.resource_group

    return RecordedNames(
        account_name=account_name,
        container=container,
        resource_group=resource_group,
    )


def make_blob_store(
    config: VaultConfig,
    provider: Optional[ResourceProvider] = None,
) -> BlobStore:
    """
    Create a BlobStore bound to the configured container.

    Uses config.connection_string when set; otherwise asks the provider
    for the account credential.

    Args:
        config: Resolved configuration
        provider: Provider used to look up the credential (built from config if None)
    """
    target = resolve_target(config)

    credential = config.connection_string
    if not credential:
        provider = provider or make_resource_provider(config)
        credential = provider.get_connection_string(target.resource_group, target.account_name)

    if config.provider == "azure":
        return AzureBlobStore(credential, target.container)
    return FilesystemBlobStore(credential, target.container)
