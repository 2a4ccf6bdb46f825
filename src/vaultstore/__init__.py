"""vaultstore: provision blob storage and manage blobs in it."""

from .constants import VAULTSTORE_VERSION

__version__ = VAULTSTORE_VERSION
