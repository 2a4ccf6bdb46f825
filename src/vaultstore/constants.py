"""Constants for vaultstore."""

# Embedded provisioning defaults
DEFAULT_RESOURCE_GROUP = "theVaultRG"
DEFAULT_REGION = "eastus"
DEFAULT_ACCOUNT_BASE_NAME = "thevaultstorage"
DEFAULT_CONTAINER = "thevault"
DEFAULT_SKU = "Standard_LRS"
DEFAULT_KIND = "StorageV2"
DEFAULT_MIN_TLS_VERSION = "TLS1_2"

# Files written in the working directory
CONFIG_FILE = "vaultstore.yaml"
LOG_FILE = "vaultstore.log"
NAMES_FILE = "storage_name.txt"

# Environment variables
ENV_SUBSCRIPTION_ID = "AZURE_SUBSCRIPTION_ID"
ENV_ACCOUNT_NAME = "AZURE_STORAGE_ACCOUNT_NAME"
ENV_CONTAINER_NAME = "AZURE_STORAGE_CONTAINER_NAME"
ENV_CONNECTION_STRING = "AZURE_STORAGE_CONNECTION_STRING"
ENV_PROVIDER = "VAULTSTORE_PROVIDER"
ENV_FS_ROOT = "VAULTSTORE_FS_ROOT"
ENV_LOG_FILE = "VAULTSTORE_LOG_FILE"

# Storage account names: lowercase alphanumeric, 3-24 characters
ACCOUNT_NAME_MIN = 3
ACCOUNT_NAME_MAX = 24

# Upper bound of the random uniqueness token (bash $RANDOM range)
RANDOM_TOKEN_MAX = 32767

# Version
VAULTSTORE_VERSION = "0.1.0"
