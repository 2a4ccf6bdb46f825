"""Provider protocols for provisioning and blob storage."""

from pathlib import Path
from typing import Iterator, Protocol

from ..models import BlobInfo, Container, CreateOutcome, ResourceGroup, StorageAccount


class ResourceProvider(Protocol):
    """
    Control plane: creates the resources blobs live in.

    Every ensure_* call is idempotent. An existing resource is reported
    as CreateOutcome.EXISTED, never raised.
    """

    def check_access(self) -> None:
        """
        Verify the provider can be reached with the current credentials.

        Raises:
            MissingDependencyError: If the provider SDK is not installed
            AuthError: If the credentials are rejected or unavailable
        """
        ...

    def ensure_resource_group(self, group: ResourceGroup) -> CreateOutcome:
        ...

    def ensure_storage_account(self, account: StorageAccount) -> CreateOutcome:
        """
        Create the storage account unless it already exists.

        Raises:
            RemoteError: If the name is taken outside this resource group
        """
        ...

    def get_connection_string(self, resource_group: str, account_name: str) -> str:
        """
        Return a connection credential scoped to one storage account.

        Raises:
            RemoteError: If no credential can be produced
        """
        ...

    def ensure_container(self, container: Container, connection_string: str) -> CreateOutcome:
        ...


class BlobStore(Protocol):
    """
    Data plane: blobs in a single container.

    Each call is a single attempt; no retries beyond the transport's own.
    """

    container: str

    def upload(self, path: Path, blob_name: str, overwrite: bool = True) -> BlobInfo:
        """
        Upload a local file.

        Raises:
            RemoteError: If the upload fails or the blob exists and overwrite is False
        """
        ...

    def download(self, blob_name: str, dest: Path) -> None:
        """
        Download a blob to a local path, leaving no partial file on failure.

        Raises:
            BlobNotFoundError: If the blob does not exist
            RemoteError: If the transfer fails
        """
        ...

    def list_blobs(self) -> Iterator[BlobInfo]:
        """
        Lazily list blobs; every call starts a fresh listing.
        """
        ...

    def delete(self, blob_name: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if a blob was removed, False if it did not exist
        """
        ...
