"""Upload, download, list and delete blobs in one container."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import NotFoundError, VaultError
from .logs import ActionLog
from .models import BlobInfo
from .storage.base import BlobStore

PathLike = Union[str, Path]


class BlobOperator:
    """
    Blob lifecycle commands over a BlobStore, with each outcome logged.

    Operations are single-attempt: a failure is logged and raised, never retried.
    """

    def __init__(self, store: BlobStore, log: Optional[ActionLog] = None):
        self.store = store
        self.log = log or logging.getLogger(__name__)

    @property
    def container(self) -> str:
        return self.store.container

    def upload(
        self,
        local_path: PathLike,
        blob_name: Optional[str] = None,
        overwrite: bool = True,
    ) -> BlobInfo:
        """
        Upload a local file.

        Args:
            local_path: File to upload
            blob_name: Name in the container (default: the file's basename)
            overwrite: Replace an existing blob of the same name

        Raises:
            NotFoundError: If local_path is not a file; the store is not called
            RemoteError: If the upload fails
        """
        path = Path(local_path)
        if not path.is_file():
            self.log.log(logging.ERROR, f"ERROR: Local file not found: '{path}'")
            raise NotFoundError(f"Local file not found: {path}")

        blob_name = blob_name or path.name
        self.log.log(
            logging.INFO,
            f"Uploading '{path}' as blob '{blob_name}' in container '{self.container}'...",
        )
        try:
            info = self.store.upload(path, blob_name, overwrite=overwrite)
        except VaultError:
            self.log.log(logging.ERROR, f"FAILURE: Failed to upload '{path}'.")
            raise
        self.log.log(logging.INFO, f"SUCCESS: Uploaded '{path}' as '{blob_name}'.")
        return info

    def download(self, blob_name: str, local_path: Optional[PathLike] = None) -> Path:
        """
        Download a blob to a local file.

        Args:
            blob_name: Blob to fetch
            local_path: Destination (default: the blob name's basename in the cwd)

        Returns:
            Path written

        Raises:
            BlobNotFoundError: If the blob does not exist
            RemoteError: If the transfer fails
        """
        dest = Path(local_path) if local_path else Path(Path(blob_name).name)
        self.log.log(
            logging.INFO,
            f"Downloading blob '{blob_name}' from container '{self.container}' to '{dest}'...",
        )
        try:
            self.store.download(blob_name, dest)
        except VaultError:
            self.log.log(logging.ERROR, f"FAILURE: Failed to download '{blob_name}'.")
            raise
        self.log.log(logging.INFO, f"SUCCESS: Downloaded '{blob_name}' to '{dest}'.")
        return dest

    def list(self) -> Iterator[BlobInfo]:
        """
        Lazily list the container; each call starts a fresh listing.

        An empty container yields nothing.
        """
        self.log.log(logging.INFO, f"Listing blobs in container '{self.container}'...")
        count = 0
        try:
            for info in self.store.list_blobs():
                count += 1
                yield info
        except VaultError:
            self.log.log(logging.ERROR, "FAILURE: Listing blobs failed.")
            raise

        if count:
            self.log.log(logging.INFO, f"SUCCESS: Listed {count} blob(s).")
        else:
            self.log.log(logging.INFO, f"SUCCESS: No files found in container '{self.container}'.")

    def delete(self, blob_name: str) -> bool:
        """
        Delete a blob; an absent blob is not an error.

        Returns:
            True if a blob was removed, False if there was nothing to delete
        """
        self.log.log(
            logging.INFO,
            f"Deleting blob '{blob_name}' from container '{self.container}'...",
        )
        try:
            removed = self.store.delete(blob_name)
        except VaultError:
            self.log.log(logging.ERROR, f"FAILURE: Failed to delete '{blob_name}'.")
            raise

        if removed:
            self.log.log(logging.INFO, f"SUCCESS: Deleted '{blob_name}'.")
        else:
            self.log.log(logging.INFO, f"SUCCESS: '{blob_name}' did not exist, nothing to delete.")
        return removed
