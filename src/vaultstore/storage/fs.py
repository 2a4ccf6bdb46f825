"""Filesystem implementation of the provider protocols.

Local stand-in for a cloud account (tests, offline runs):

    root/<resource group>/group.json
    root/<resource group>/<account>/account.json
    root/<resource group>/<account>/containers.json
    root/<resource group>/<account>/containers/<container>/<blob path>
    root/<resource group>/<account>/.staging/      (in-flight uploads)

The connection credential is ``fs://<absolute account directory>``.
"""

import json
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional

from ..errors import AuthError, BlobNotFoundError, ConfigError, RemoteError, UsageError
from ..models import BlobInfo, Container, CreateOutcome, ResourceGroup, StorageAccount
from ..utils import atomic_write

logger = logging.getLogger(__name__)

GROUP_META = "group.json"
ACCOUNT_META = "account.json"
CONTAINERS_META = "containers.json"
CONTAINERS_DIR = "containers"
STAGING_DIR = ".staging"


def _write_json(path: Path, data: dict) -> None:
    atomic_write(path, lambda f: f.write(json.dumps(data, indent=2, sort_keys=True).encode()))


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text())


def _safe_target(root: Path, blob_name: str) -> Path:
    """Map a blob name to a path under root.

    Args:
        root: Container directory
        blob_name: Blob name, "/" separated

    Returns:
        Resolved path inside root

    Raises:
        UsageError: If the name is empty, absolute or escapes root
    """
    if not blob_name or not blob_name.strip():
        raise UsageError("Unsafe blob name: empty name")

    # Forbid absolute or parent traversal in either separator style
    if (blob_name.startswith(("/", "\\")) or
        ".." in blob_name.split("/") or
        ".." in blob_name.split("\\")):
        raise UsageError(f"Unsafe blob name: {blob_name}")

    target = (root / blob_name).resolve()
    try:
        target.relative_to(root.resolve())
    except ValueError:
        raise UsageError(f"Unsafe blob name: {blob_name} escapes the container")
    return target


def parse_fs_uri(connection_string: str) -> Path:
    """
    Parse fs:// credential to get the account directory.

    Raises:
        ConfigError: If not a fs:// credential
    """
    if not connection_string.startswith("fs://"):
        raise ConfigError(f"Expected fs:// connection string, got {connection_string[:16]}...")
    return Path(connection_string[5:])


class FilesystemResourceProvider:
    """
    Provision resource groups, accounts and containers as directories.

    Account names are unique across the whole root, as storage account
    names are unique across a cloud provider.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def check_access(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AuthError(f"Cannot create storage root {self.root}: {e}") from e
        if not os.access(self.root, os.W_OK):
            raise AuthError(f"No write access to storage root {self.root}")

    def _find_account(self, account_name: str) -> Optional[Path]:
        for meta in self.root.glob(f"*/{account_name}/{ACCOUNT_META}"):
            return meta.parent
        return None

    def ensure_resource_group(self, group: ResourceGroup) -> CreateOutcome:
        group_dir = self.root / group.name
        meta = group_dir / GROUP_META
        if meta.exists():
            region = _read_json(meta).get("region")
            if region != group.region:
                raise RemoteError(
                    f"Resource group '{group.name}' already exists in region '{region}', "
                    f"not '{group.region}'"
                )
            return CreateOutcome.EXISTED

        group_dir.mkdir(parents=True, exist_ok=True)
        _write_json(meta, group.model_dump())
        return CreateOutcome.CREATED

    def ensure_storage_account(self, account: StorageAccount) -> CreateOutcome:
        existing = self._find_account(account.name)
        if existing is not None:
            if existing.parent.name != account.resource_group:
                raise RemoteError(
                    f"Storage account name '{account.name}' is not available: "
                    f"already taken in resource group '{existing.parent.name}'"
                )
            return CreateOutcome.EXISTED

        group_dir = self.root / account.resource_group
        if not (group_dir / GROUP_META).exists():
            raise RemoteError(f"Resource group '{account.resource_group}' could not be found")

        account_dir = group_dir / account.name
        (account_dir / CONTAINERS_DIR).mkdir(parents=True, exist_ok=True)
        _write_json(account_dir / CONTAINERS_META, {})
        _write_json(account_dir / ACCOUNT_META, account.model_dump())
        return CreateOutcome.CREATED

    def get_connection_string(self, resource_group: str, account_name: str) -> str:
        account_dir = self.root / resource_group / account_name
        if not (account_dir / ACCOUNT_META).exists():
            raise RemoteError(
                f"Storage account '{account_name}' not found in resource group '{resource_group}'"
            )
        return f"fs://{account_dir.resolve()}"

    def ensure_container(self, container: Container, connection_string: str) -> CreateOutcome:
        account_dir = parse_fs_uri(connection_string)
        if not (account_dir / ACCOUNT_META).exists():
            raise RemoteError(f"Storage account at {account_dir} not found")

        container_dir = account_dir / CONTAINERS_DIR / container.name
        if container_dir.is_dir():
            return CreateOutcome.EXISTED

        container_dir.mkdir(parents=True)
        meta_path = account_dir / CONTAINERS_META
        levels: Dict[str, str] = _read_json(meta_path) if meta_path.exists() else {}
        levels[container.name] = container.public_access.value
        _write_json(meta_path, levels)
        return CreateOutcome.CREATED


class FilesystemBlobStore:
    """
    Local filesystem BlobStore for one container.

    Blob names map to relative paths; "a/b.txt" is stored as a/b.txt.
    """

    def __init__(self, connection_string: str, container: str):
        """
        Initialize filesystem store.

        Args:
            connection_string: fs:// account credential
            container: Container name
        """
        self.account_dir = parse_fs_uri(connection_string)
        self.container = container
        self.base_dir = self.account_dir / CONTAINERS_DIR / container

    def _require_container(self) -> None:
        if not self.base_dir.is_dir():
            raise RemoteError(f"Container '{self.container}' does not exist in {self.account_dir}")

    def _info(self, name: str, path: Path) -> BlobInfo:
        st = path.stat()
        return BlobInfo(
            name=name,
            size=st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def upload(self, path: Path, blob_name: str, overwrite: bool = True) -> BlobInfo:
        self._require_container()
        dest = _safe_target(self.base_dir, blob_name)
        if dest.exists() and not overwrite:
            raise RemoteError(
                f"Blob already exists: {self.container}/{blob_name} (overwrite disabled)"
            )

        def copy(out):
            with open(path, "rb") as src:
                shutil.copyfileobj(src, out)

        try:
            atomic_write(dest, copy, tmp_dir=self.account_dir / STAGING_DIR)
        except OSError as e:
            raise RemoteError(f"Uploading '{path}' as '{blob_name}' failed: {e}") from e
        return self._info(blob_name, dest)

    def download(self, blob_name: str, dest: Path) -> None:
        self._require_container()
        src = _safe_target(self.base_dir, blob_name)
        if not src.is_file():
            raise BlobNotFoundError(self.container, blob_name)

        def copy(out):
            with open(src, "rb") as f:
                shutil.copyfileobj(f, out)

        try:
            atomic_write(Path(dest), copy)
        except OSError as e:
            raise RemoteError(f"Downloading '{blob_name}' failed: {e}") from e

    def list_blobs(self) -> Iterator[BlobInfo]:
        self._require_container()
        files = (p for p in self.base_dir.rglob("*") if p.is_file())
        # Blob listings come back in lexicographic name order
        for name, path in sorted((p.relative_to(self.base_dir).as_posix(), p) for p in files):
            yield self._info(name, path)

    def delete(self, blob_name: str) -> bool:
        self._require_container()
        target = _safe_target(self.base_dir, blob_name)
        if not target.is_file():
            logger.debug("Blob %s/%s already absent", self.container, blob_name)
            return False

        target.unlink()
        # Drop directories left empty by nested names
        parent = target.parent
        base = self.base_dir.resolve()
        while parent != base and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True
