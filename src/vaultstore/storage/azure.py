"""Azure Storage implementation of the provider protocols."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator

from ..errors import (
    AuthError,
    BlobNotFoundError,
    ConfigError,
    MissingDependencyError,
    RemoteError,
)
from ..models import BlobInfo, Container, CreateOutcome, ResourceGroup, StorageAccount
from ..utils import atomic_write

logger = logging.getLogger(__name__)

MANAGEMENT_SCOPE = "https://management.azure.com/.default"
ENDPOINT_SUFFIX = "core.windows.net"


def build_connection_string(account_name: str, account_key: str,
                            endpoint_suffix: str = ENDPOINT_SUFFIX) -> str:
    """Connection string in the format the portal and `az` hand out."""
    return (
        f"DefaultEndpointsProtocol=https;AccountName={account_name};"
        f"AccountKey={account_key};EndpointSuffix={endpoint_suffix}"
    )


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """
    Split a connection string into its key=value parts.

    Example:
        "AccountName=abc;AccountKey=k==" -> {"AccountName": "abc", "AccountKey": "k=="}
    """
    parts = {}
    for segment in connection_string.split(";"):
        if "=" in segment:
            key, value = segment.split("=", 1)
            parts[key.strip()] = value.strip()
    return parts


@contextmanager
def _azure_errors(action: str):
    """Translate Azure SDK exceptions raised inside the block into vaultstore errors."""
    from azure.core.exceptions import AzureError, ClientAuthenticationError

    try:
        yield
    except ClientAuthenticationError as e:
        raise AuthError(
            f"{action}: Azure authentication failed.\n"
            f"Error: {e}\n\n"
            f"Try:\n"
            f"  1. az login\n"
            f"  2. or set AZURE_CLIENT_ID, AZURE_TENANT_ID and AZURE_CLIENT_SECRET"
        ) from e
    except AzureError as e:
        raise RemoteError(f"{action} failed: {e}") from e


def _blob_service_client(connection_string: str):
    try:
        from azure.storage.blob import BlobServiceClient
    except ImportError:
        raise MissingDependencyError("azure-storage-blob", "Azure blob storage")

    try:
        return BlobServiceClient.from_connection_string(connection_string)
    except ValueError as e:
        raise ConfigError(f"Invalid storage connection string: {e}") from e


class AzureResourceProvider:
    """
    Provision resource groups, storage accounts and containers on Azure.

    Credentials come from DefaultAzureCredential: service principal
    environment variables, workload identity, managed identity or a
    cached `az login` session.
    """

    def __init__(
        self,
        subscription_id: str,
        credential=None,
        resource_client=None,
        storage_client=None,
    ):
        """
        Initialize Azure provisioning clients.

        Args:
            subscription_id: Azure subscription to provision in
            credential: Token credential (default: DefaultAzureCredential)
            resource_client: Pre-built ResourceManagementClient
            storage_client: Pre-built StorageManagementClient
        """
        if not subscription_id:
            raise ConfigError(
                "AZURE_SUBSCRIPTION_ID (or subscription_id in vaultstore.yaml) "
                "required for Azure provisioning"
            )
        self.subscription_id = subscription_id

        if credential is None:
            try:
                from azure.identity import DefaultAzureCredential
            except ImportError:
                raise MissingDependencyError("azure-identity", "Azure authentication")
            credential = DefaultAzureCredential()
        self.credential = credential

        if resource_client is None:
            try:
                from azure.mgmt.resource.resources import ResourceManagementClient
            except ImportError:
                raise MissingDependencyError("azure-mgmt-resource", "resource group provisioning")
            resource_client = ResourceManagementClient(credential, subscription_id)
        self.resource_client = resource_client

        if storage_client is None:
            try:
                from azure.mgmt.storage import StorageManagementClient
            except ImportError:
                raise MissingDependencyError("azure-mgmt-storage", "storage account provisioning")
            storage_client = StorageManagementClient(credential, subscription_id)
        self.storage_client = storage_client

    def check_access(self) -> None:
        with _azure_errors("Checking Azure login"):
            self.credential.get_token(MANAGEMENT_SCOPE)

    def ensure_resource_group(self, group: ResourceGroup) -> CreateOutcome:
        with _azure_errors(f"Creating resource group '{group.name}'"):
            if self.resource_client.resource_groups.check_existence(group.name):
                return CreateOutcome.EXISTED
            self.resource_client.resource_groups.create_or_update(
                group.name, {"location": group.region}
            )
        return CreateOutcome.CREATED

    def ensure_storage_account(self, account: StorageAccount) -> CreateOutcome:
        from azure.core.exceptions import ResourceNotFoundError
        from azure.mgmt.storage.models import (
            Sku,
            StorageAccountCheckNameAvailabilityParameters,
            StorageAccountCreateParameters,
        )

        with _azure_errors(f"Creating storage account '{account.name}'"):
            try:
                self.storage_client.storage_accounts.get_properties(
                    account.resource_group, account.name
                )
                return CreateOutcome.EXISTED
            except ResourceNotFoundError:
                pass

            # Names are global: a 404 here can still mean someone else owns it
            availability = self.storage_client.storage_accounts.check_name_availability(
                StorageAccountCheckNameAvailabilityParameters(name=account.name)
            )
            if not availability.name_available:
                raise RemoteError(
                    f"Storage account name '{account.name}' is not available: "
                    f"{availability.message or availability.reason}"
                )

            params = StorageAccountCreateParameters(
                sku=Sku(name=account.sku),
                kind=account.kind,
                location=account.region,
                allow_blob_public_access=account.allow_blob_public_access,
                minimum_tls_version=account.min_tls_version,
            )
            poller = self.storage_client.storage_accounts.begin_create(
                account.resource_group, account.name, params
            )
            poller.result()
        return CreateOutcome.CREATED

    def get_connection_string(self, resource_group: str, account_name: str) -> str:
        with _azure_errors(f"Retrieving keys for storage account '{account_name}'"):
            keys = self.storage_client.storage_accounts.list_keys(resource_group, account_name)

        key = next((k.value for k in (keys.keys or []) if k.value), None)
        if not key:
            raise RemoteError(f"Storage account '{account_name}' returned no access keys")
        return build_connection_string(account_name, key)

    def ensure_container(self, container: Container, connection_string: str) -> CreateOutcome:
        from azure.core.exceptions import ResourceExistsError

        service = _blob_service_client(connection_string)
        with _azure_errors(f"Creating container '{container.name}'"):
            try:
                service.get_container_client(container.name).create_container(
                    public_access=container.public_access.sdk_value
                )
            except ResourceExistsError:
                return CreateOutcome.EXISTED
        return CreateOutcome.CREATED


class AzureBlobStore:
    """
    Azure Blob Storage implementation of BlobStore for one container.
    """

    def __init__(self, connection_string: str, container: str, service_client=None):
        """
        Initialize Azure blob store.

        Args:
            connection_string: Azure Storage connection string
            container: Container name
            service_client: Pre-built BlobServiceClient
        """
        self.client = service_client or _blob_service_client(connection_string)
        self.container = container
        self.account_name = parse_connection_string(connection_string).get("AccountName", "")

    def _blob(self, blob_name: str):
        return self.client.get_blob_client(container=self.container, blob=blob_name)

    def upload(self, path: Path, blob_name: str, overwrite: bool = True) -> BlobInfo:
        from azure.core.exceptions import ResourceExistsError

        blob_client = self._blob(blob_name)
        with _azure_errors(f"Uploading '{path}' as '{blob_name}'"):
            try:
                with open(path, "rb") as f:
                    blob_client.upload_blob(f, overwrite=overwrite)
            except ResourceExistsError as e:
                raise RemoteError(
                    f"Blob already exists: {self.container}/{blob_name} (overwrite disabled)"
                ) from e
            except OSError as e:
                raise RemoteError(f"Uploading '{path}' as '{blob_name}' failed: {e}") from e
            props = blob_client.get_blob_properties()

        return BlobInfo(name=blob_name, size=props.size, last_modified=props.last_modified)

    def download(self, blob_name: str, dest: Path) -> None:
        from azure.core.exceptions import ResourceNotFoundError

        blob_client = self._blob(blob_name)
        with _azure_errors(f"Downloading '{blob_name}'"):
            try:
                downloader = blob_client.download_blob()
            except ResourceNotFoundError as e:
                raise BlobNotFoundError(self.container, blob_name) from e
            try:
                atomic_write(Path(dest), downloader.readinto)
            except OSError as e:
                raise RemoteError(f"Downloading '{blob_name}' failed: {e}") from e

    def list_blobs(self) -> Iterator[BlobInfo]:
        container_client = self.client.get_container_client(self.container)
        with _azure_errors(f"Listing container '{self.container}'"):
            for props in container_client.list_blobs():
                yield BlobInfo(
                    name=props.name,
                    size=props.size or 0,
                    last_modified=props.last_modified,
                )

    def delete(self, blob_name: str) -> bool:
        from azure.core.exceptions import ResourceNotFoundError

        with _azure_errors(f"Deleting '{blob_name}'"):
            try:
                self._blob(blob_name).delete_blob(delete_snapshots="include")
            except ResourceNotFoundError:
                logger.debug("Blob %s/%s already absent", self.container, blob_name)
                return False
        return True
