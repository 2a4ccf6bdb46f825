"""Idempotent provisioning of resource group, storage account and container."""

import logging
from pathlib import Path
from typing import Callable, Optional

from .config import VaultConfig
from .errors import RemoteError, VaultError
from .logs import ActionLog
from .models import (
    Container,
    CreateOutcome,
    ProvisionResult,
    PublicAccess,
    ResourceGroup,
    StorageAccount,
)
from .names_file import RecordedNames, read_names_file, write_names_file
from .naming import generate_account_name
from .storage.base import ResourceProvider


class Provisioner:
    """Ensure the resources for one vault exist and hand back a credential.

    Every step is create-if-absent, so a failed run is fixed by running
    again; nothing is rolled back.
    """

    def __init__(
        self,
        config: VaultConfig,
        provider: ResourceProvider,
        log: Optional[ActionLog] = None,
    ):
        self.config = config
        self.provider = provider
        self.log = log or logging.getLogger(__name__)
        self.names_path = Path(config.names_file)

    def resolve_account_name(self) -> str:
        """Pinned name, else the name recorded for this resource group, else a new one."""
        if self.config.account_name:
            return self.config.account_name

        recorded = read_names_file(self.names_path)
        if recorded and recorded.resource_group == self.config.resource_group:
            self.log.log(
                logging.INFO,
                f"Reusing storage account '{recorded.account_name}' recorded in {self.names_path}",
            )
            return recorded.account_name

        return generate_account_name(
            self.config.account_base_name, strategy=self.config.name_strategy
        )

    def _ensure(self, what: str, create: Callable[[], CreateOutcome]) -> CreateOutcome:
        self.log.log(logging.INFO, f"Creating {what}...")
        try:
            outcome = create()
        except VaultError:
            self.log.log(logging.ERROR, f"FAILURE: Failed to create or verify {what}.")
            raise

        if outcome is CreateOutcome.EXISTED:
            self.log.log(logging.INFO, f"{what[0].upper()}{what[1:]} already exists.")
        else:
            self.log.log(logging.INFO, f"{what[0].upper()}{what[1:]} created.")
        return outcome

    def provision(self) -> ProvisionResult:
        """
        Run the provisioning sequence.

        Returns:
            ProvisionResult with the account credential and per-step outcomes

        Raises:
            MissingDependencyError: If the provider SDK is not installed
            AuthError: If the provider rejects the credentials
            RemoteError: On any provider-side failure, including an empty credential
            ConfigError: If a name is invalid
        """
        cfg = self.config
        self.log.log(logging.INFO, "Starting storage deployment...")

        self.log.log(logging.INFO, "Checking provider access...")
        self.provider.check_access()
        self.log.log(logging.INFO, "Provider access verified.")

        group = ResourceGroup(name=cfg.resource_group, region=cfg.region)
        account = StorageAccount(
            name=self.resolve_account_name(),
            resource_group=cfg.resource_group,
            region=cfg.region,
            sku=cfg.sku,
            kind=cfg.kind,
            allow_blob_public_access=cfg.allow_blob_public_access,
            min_tls_version=cfg.min_tls_version,
        )
        container = Container(
            name=cfg.container,
            account_name=account.name,
            public_access=cfg.public_access,
        )

        self.log.log(logging.INFO, f"Resource Group: {group.name}")
        self.log.log(logging.INFO, f"Storage Account: {account.name}")
        self.log.log(logging.INFO, f"Container: {container.name}")
        self.log.log(logging.INFO, f"Location: {group.region}")
        if container.public_access is not PublicAccess.NONE:
            self.log.log(
                logging.WARNING,
                f"Container '{container.name}' will allow anonymous read access "
                f"({container.public_access.value}).",
            )

        outcomes = {
            "resource_group": self._ensure(
                f"resource group '{group.name}' in '{group.region}'",
                lambda: self.provider.ensure_resource_group(group),
            ),
            "storage_account": self._ensure(
                f"storage account '{account.name}'",
                lambda: self.provider.ensure_storage_account(account),
            ),
        }

        self.log.log(logging.INFO, "Retrieving storage account connection string...")
        credential = self.provider.get_connection_string(group.name, account.name)
        if not credential:
            self.log.log(logging.ERROR, "Failed to retrieve connection string.")
            raise RemoteError(f"Empty connection string for storage account '{account.name}'")
        self.log.log(logging.INFO, "Connection string retrieved.")

        outcomes["container"] = self._ensure(
            f"container '{container.name}'",
            lambda: self.provider.ensure_container(container, credential),
        )

        write_names_file(
            self.names_path,
            RecordedNames(
                account_name=account.name,
                container=container.name,
                resource_group=group.name,
            ),
        )
        self.log.log(logging.INFO, f"Resource names written to {self.names_path}")
        self.log.log(logging.INFO, "Deployment complete! Storage account and container are ready.")

        return ProvisionResult(
            resource_group=group,
            account=account,
            container=container,
            credential=credential,
            outcomes=outcomes,
        )
