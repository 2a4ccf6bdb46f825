"""Data models for provisioned resources and blob listings."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class PublicAccess(str, Enum):
    """Anonymous read access level of a container."""
    NONE = "none"            # Private
    BLOB = "blob"            # Anonymous read of blobs only
    CONTAINER = "container"  # Anonymous read of blobs and container listing

    @property
    def sdk_value(self) -> Optional[str]:
        """Value expected by the storage SDK (None means private)."""
        return None if self is PublicAccess.NONE else self.value


class CreateOutcome(str, Enum):
    """Result of an idempotent create."""
    CREATED = "created"
    EXISTED = "existed"


class ResourceGroup(BaseModel):
    name: str
    region: str


class StorageAccount(BaseModel):
    name: str
    resource_group: str
    region: str
    sku: str
    kind: str
    allow_blob_public_access: bool = True
    min_tls_version: str = "TLS1_2"


class Container(BaseModel):
    name: str
    account_name: str
    public_access: PublicAccess = PublicAccess.NONE


class BlobInfo(BaseModel):
    """One entry of a container listing."""
    name: str
    size: int
    last_modified: Optional[datetime] = None


class ProvisionResult(BaseModel):
    """Everything produced by one provision run."""
    resource_group: ResourceGroup
    account: StorageAccount
    container: Container
    credential: str = Field(repr=False)
    outcomes: Dict[str, CreateOutcome] = Field(default_factory=dict)
