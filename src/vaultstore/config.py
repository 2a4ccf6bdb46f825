"""Configuration for provisioning and blob operations.

A single ``VaultConfig`` is built once per invocation and passed by
parameter to the provisioner, the blob operator and the providers.
Sources, later wins: embedded defaults, ``vaultstore.yaml``, environment.
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .constants import (
    CONFIG_FILE,
    DEFAULT_ACCOUNT_BASE_NAME,
    DEFAULT_CONTAINER,
    DEFAULT_KIND,
    DEFAULT_MIN_TLS_VERSION,
    DEFAULT_REGION,
    DEFAULT_RESOURCE_GROUP,
    DEFAULT_SKU,
    ENV_ACCOUNT_NAME,
    ENV_CONNECTION_STRING,
    ENV_CONTAINER_NAME,
    ENV_FS_ROOT,
    ENV_LOG_FILE,
    ENV_PROVIDER,
    ENV_SUBSCRIPTION_ID,
    LOG_FILE,
    NAMES_FILE,
)
from .errors import ConfigError
from .models import PublicAccess
from .naming import TOKEN_STRATEGIES, validate_account_name, validate_container_name
from .utils import mask_secret

PROVIDERS = ("azure", "fs")

# Environment variable -> config field
ENV_OVERRIDES: Dict[str, str] = {
    ENV_PROVIDER: "provider",
    ENV_SUBSCRIPTION_ID: "subscription_id",
    ENV_ACCOUNT_NAME: "account_name",
    ENV_CONTAINER_NAME: "container",
    ENV_CONNECTION_STRING: "connection_string",
    ENV_FS_ROOT: "fs_root",
    ENV_LOG_FILE: "log_file",
}


class VaultConfig(BaseModel):
    """Resolved settings for one vaultstore invocation."""

    provider: str = "azure"                     # "azure" | "fs"
    subscription_id: Optional[str] = None       # Required to provision on Azure
    fs_root: Optional[str] = None               # Required for provider "fs"

    resource_group: str = DEFAULT_RESOURCE_GROUP
    region: str = DEFAULT_REGION
    account_base_name: str = DEFAULT_ACCOUNT_BASE_NAME
    account_name: Optional[str] = None          # Pin instead of generating
    name_strategy: str = "timestamp"            # "timestamp" | "random"
    container: str = DEFAULT_CONTAINER
    sku: str = DEFAULT_SKU
    kind: str = DEFAULT_KIND
    public_access: PublicAccess = PublicAccess.BLOB
    allow_blob_public_access: bool = True
    min_tls_version: str = DEFAULT_MIN_TLS_VERSION

    connection_string: Optional[str] = Field(default=None, repr=False)

    log_file: str = LOG_FILE
    names_file: str = NAMES_FILE

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PROVIDERS:
            raise ConfigError(f"Unknown provider '{v}', expected one of {', '.join(PROVIDERS)}")
        return v

    @field_validator("name_strategy")
    @classmethod
    def validate_name_strategy(cls, v: str) -> str:
        if v not in TOKEN_STRATEGIES:
            raise ConfigError(
                f"Unknown name_strategy '{v}', expected one of {', '.join(TOKEN_STRATEGIES)}"
            )
        return v

    @field_validator("account_name")
    @classmethod
    def validate_account(cls, v: Optional[str]) -> Optional[str]:
        return validate_account_name(v) if v else None

    @field_validator("container")
    @classmethod
    def validate_container(cls, v: str) -> str:
        return validate_container_name(v)

    @model_validator(mode="after")
    def validate_combination(self):
        """Reject settings the provider would refuse later."""
        if self.public_access is not PublicAccess.NONE and not self.allow_blob_public_access:
            raise ConfigError(
                f"Container public access '{self.public_access.value}' requires "
                f"allow_blob_public_access: true on the storage account"
            )
        if self.provider == "fs" and not self.fs_root:
            raise ConfigError(f"fs_root (or {ENV_FS_ROOT}) required for the fs provider")
        return self

    def is_explicit(self, field: str) -> bool:
        """True if the field came from a config file or the environment."""
        return field in self.model_fields_set

    def display_dict(self) -> Dict[str, object]:
        """Config as a dict with the credential masked."""
        data = self.model_dump(mode="json")
        if data.get("connection_string"):
            data["connection_string"] = mask_secret(data["connection_string"])
        return data


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> VaultConfig:
    """Load configuration from defaults, YAML file and environment.

    Args:
        path: Explicit config file; defaults to ./vaultstore.yaml if present
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated VaultConfig

    Raises:
        ConfigError: If the file is missing, malformed or the values are invalid
    """
    env = os.environ if environ is None else environ
    data: Dict[str, object] = {}

    cfg_path = Path(path) if path else Path.cwd() / CONFIG_FILE
    if path and not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")

    if cfg_path.exists():
        try:
            loaded = yaml.safe_load(cfg_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {cfg_path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{cfg_path} must contain a mapping of settings")
        data.update(loaded)

    for env_name, field in ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            data[field] = value

    try:
        return VaultConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
