"""Storage providers: provisioning (control plane) and blobs (data plane)."""

from .base import BlobStore, ResourceProvider
from .factory import make_blob_store, make_resource_provider, resolve_target

__all__ = ["BlobStore", "ResourceProvider", "make_blob_store", "make_resource_provider", "resolve_target"]
