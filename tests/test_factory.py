"""Test provider selection and blob target resolution."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vaultstore.config import load_config
from vaultstore.errors import ConfigError
from vaultstore.names_file import RecordedNames, write_names_file
from vaultstore.storage import make_blob_store, make_resource_provider, resolve_target
from vaultstore.storage.azure import AzureBlobStore, AzureResourceProvider
from vaultstore.storage.fs import FilesystemBlobStore, FilesystemResourceProvider


def test_fs_provider(fs_config):
    assert isinstance(make_resource_provider(fs_config), FilesystemResourceProvider)


def test_azure_provider_needs_subscription(workdir):
    with pytest.raises(ConfigError, match="AZURE_SUBSCRIPTION_ID"):
        make_resource_provider(load_config(environ={}))


def test_azure_provider(workdir, monkeypatch):
    monkeypatch.setattr("azure.identity.DefaultAzureCredential", MagicMock())
    monkeypatch.setattr("azure.mgmt.resource.resources.ResourceManagementClient", MagicMock())
    monkeypatch.setattr("azure.mgmt.storage.StorageManagementClient", MagicMock())
    config = load_config(environ={"AZURE_SUBSCRIPTION_ID": "00000000-0000-0000-0000-000000000000"})

    provider = make_resource_provider(config)

    assert isinstance(provider, AzureResourceProvider)
    assert provider.subscription_id == "00000000-0000-0000-0000-000000000000"


class TestResolveTarget:

    def test_no_account_anywhere(self, workdir):
        with pytest.raises(ConfigError, match="vaultstore provision"):
            resolve_target(load_config(environ={}))

    def test_names_file_used(self, workdir):
        write_names_file(
            workdir / "storage_name.txt",
            RecordedNames(account_name="mainvaultstorage32091", container="publiccontainer",
                          resource_group="newvaultgroup"),
        )

        target = resolve_target(load_config(environ={}))

        assert target == RecordedNames(
            account_name="mainvaultstorage32091",
            container="publiccontainer",
            resource_group="newvaultgroup",
        )

    def test_explicit_settings_win(self, workdir):
        write_names_file(
            workdir / "storage_name.txt",
            RecordedNames(account_name="mainvaultstorage32091", container="publiccontainer",
                          resource_group="newvaultgroup"),
        )

        target = resolve_target(load_config(environ={"AZURE_STORAGE_CONTAINER_NAME": "othercontainer"}))

        assert target.account_name == "mainvaultstorage32091"
        assert target.container == "othercontainer"
        assert target.resource_group == "newvaultgroup"

    def test_different_account_ignores_recorded_container(self, workdir):
        write_names_file(
            workdir / "storage_name.txt",
            RecordedNames(account_name="mainvaultstorage32091", container="publiccontainer",
                          resource_group="newvaultgroup"),
        )

        target = resolve_target(load_config(environ={"AZURE_STORAGE_ACCOUNT_NAME": "anotheraccount"}))

        assert target.account_name == "anotheraccount"
        assert target.container == "thevault"
        assert target.resource_group == "theVaultRG"

    def test_account_from_connection_string(self, workdir):
        target = resolve_target(load_config(environ={
            "AZURE_STORAGE_CONNECTION_STRING": "DefaultEndpointsProtocol=https;"
                                               "AccountName=vaultstore1700000000;AccountKey=a2V5",
        }))

        assert target.account_name == "vaultstore1700000000"
        assert target.container == "thevault"

    def test_connection_string_wins_over_names_file(self, workdir):
        write_names_file(
            workdir / "storage_name.txt",
            RecordedNames(account_name="mainvaultstorage32091", container="publiccontainer",
                          resource_group="newvaultgroup"),
        )

        target = resolve_target(load_config(environ={
            "AZURE_STORAGE_CONNECTION_STRING": "AccountName=anotheraccount;AccountKey=a2V5",
        }))

        assert target.account_name == "anotheraccount"
        assert target.container == "thevault"

    def test_account_from_fs_credential(self, fs_config, provisioned):
        Path(fs_config.names_file).unlink()
        config = fs_config.model_copy(update={"connection_string": provisioned.credential})

        target = resolve_target(config)

        assert target.account_name == provisioned.account.name


class TestMakeBlobStore:

    def test_credential_looked_up_from_provider(self, fs_config, provisioned):
        store = make_blob_store(fs_config)

        assert isinstance(store, FilesystemBlobStore)
        assert store.container == "thevault"
        assert f"fs://{store.account_dir}" == provisioned.credential

    def test_explicit_connection_string_skips_lookup(self, workdir, monkeypatch):
        service = MagicMock()
        monkeypatch.setattr("vaultstore.storage.azure._blob_service_client", lambda cs: service)
        config = load_config(environ={
            "AZURE_STORAGE_ACCOUNT_NAME": "vaultstore1700000000",
            "AZURE_STORAGE_CONNECTION_STRING": "AccountName=vaultstore1700000000;AccountKey=a2V5",
        })
        provider = MagicMock()

        store = make_blob_store(config, provider=provider)

        assert isinstance(store, AzureBlobStore)
        assert store.client is service
        provider.get_connection_string.assert_not_called()

    def test_azure_key_lookup(self, workdir, monkeypatch):
        monkeypatch.setattr("vaultstore.storage.azure._blob_service_client", lambda cs: MagicMock())
        config = load_config(environ={"AZURE_STORAGE_ACCOUNT_NAME": "vaultstore1700000000"})
        provider = MagicMock()
        provider.get_connection_string.return_value = "AccountName=vaultstore1700000000;AccountKey=a2V5"

        store = make_blob_store(config, provider=provider)

        provider.get_connection_string.assert_called_once_with("theVaultRG", "vaultstore1700000000")
        assert store.account_name == "vaultstore1700000000"
