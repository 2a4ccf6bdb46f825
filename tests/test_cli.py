"""Integration tests for CLI commands against the filesystem provider.

Commands run in-process with CliRunner; usage errors go through main().
"""

import re
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from vaultstore.cli import app, main
from vaultstore.names_file import read_names_file


# ========== Fixtures ==========

@pytest.fixture
def runner():
    """Create a CliRunner for in-process testing."""
    return CliRunner()


@pytest.fixture
def fs_env(tmp_path, workdir, monkeypatch):
    """Point the CLI at a filesystem 'cloud' under tmp_path."""
    monkeypatch.setenv("VAULTSTORE_PROVIDER", "fs")
    monkeypatch.setenv("VAULTSTORE_FS_ROOT", str(tmp_path / "cloud"))
    return workdir


@pytest.fixture
def provisioned_env(runner, fs_env):
    result = runner.invoke(app, ["provision"])
    assert result.exit_code == 0, result.output
    return fs_env


def _run_main(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["vaultstore", *args])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


# ========== provision ==========

def test_provision(runner, fs_env):
    result = runner.invoke(app, ["provision"])

    assert result.exit_code == 0, result.output
    assert "Created storage account" in result.output
    names = read_names_file(fs_env / "storage_name.txt")
    assert names.container == "thevault"
    assert names.resource_group == "theVaultRG"
    assert re.fullmatch(r"thevaultstorag\d+", names.account_name)
    assert len(names.account_name) <= 24


def test_provision_twice(runner, provisioned_env):
    first = read_names_file(provisioned_env / "storage_name.txt")

    result = runner.invoke(app, ["provision"])

    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert read_names_file(provisioned_env / "storage_name.txt") == first


def test_provision_export(runner, fs_env):
    result = runner.invoke(app, ["provision", "--export"])

    assert result.exit_code == 0, result.output
    assert re.search(r"^export AZURE_STORAGE_ACCOUNT_NAME=thevaultstorag\d{10}$", result.output, re.M)
    assert "export AZURE_STORAGE_CONTAINER_NAME=thevault" in result.output
    assert "export AZURE_STORAGE_CONNECTION_STRING=fs://" in result.output


def test_provision_azure_without_subscription(runner, workdir):
    result = runner.invoke(app, ["provision"])

    assert result.exit_code == 1
    assert "AZURE_SUBSCRIPTION_ID" in (workdir / "vaultstore.log").read_text()


def test_provision_with_config_file(runner, fs_env):
    (fs_env / "custom.yaml").write_text("resource_group: newvaultgroup\ncontainer: publiccontainer\n")

    result = runner.invoke(app, ["--config", "custom.yaml", "provision"])

    assert result.exit_code == 0, result.output
    names = read_names_file(fs_env / "storage_name.txt")
    assert (names.resource_group, names.container) == ("newvaultgroup", "publiccontainer")


def test_invalid_config_exits_1(runner, fs_env):
    (fs_env / "vaultstore.yaml").write_text("container: Not_Valid\n")

    result = runner.invoke(app, ["provision"])

    assert result.exit_code == 1


# ========== blob commands ==========

def test_upload_list_download_delete(runner, provisioned_env):
    (provisioned_env / "testfile.txt").write_text("vault contents")

    result = runner.invoke(app, ["upload", "testfile.txt", "testblob"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0, result.output
    assert "testblob" in result.output

    result = runner.invoke(app, ["download", "testblob", "fetched.txt"])
    assert result.exit_code == 0, result.output
    assert (provisioned_env / "fetched.txt").read_text() == "vault contents"

    result = runner.invoke(app, ["delete", "testblob"])
    assert result.exit_code == 0, result.output
    assert "Deleted testblob" in result.output

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0, result.output
    assert "No files found." in result.output


def test_upload_default_blob_name(runner, provisioned_env):
    (provisioned_env / "report.csv").write_text("a,b\n")

    result = runner.invoke(app, ["upload", "report.csv"])

    assert result.exit_code == 0, result.output
    assert "thevault/report.csv" in result.output


def test_upload_missing_file(runner, provisioned_env):
    result = runner.invoke(app, ["upload", "nope.txt", "blob"])

    assert result.exit_code == 1
    assert "Local file not found" in (provisioned_env / "vaultstore.log").read_text()


def test_upload_no_overwrite(runner, provisioned_env):
    (provisioned_env / "a.txt").write_text("a")
    assert runner.invoke(app, ["upload", "a.txt"]).exit_code == 0

    result = runner.invoke(app, ["upload", "a.txt", "--no-overwrite"])

    assert result.exit_code == 1


def test_download_missing_blob(runner, provisioned_env):
    result = runner.invoke(app, ["download", "ghost", "ghost.txt"])

    assert result.exit_code == 1
    assert not (provisioned_env / "ghost.txt").exists()


def test_delete_missing_blob_succeeds(runner, provisioned_env):
    result = runner.invoke(app, ["delete", "ghost"])

    assert result.exit_code == 0, result.output
    assert "nothing deleted" in result.output


def test_list_empty(runner, provisioned_env):
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0, result.output
    assert "No files found." in result.output


def test_blob_commands_before_provision(runner, fs_env):
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 1
    assert "vaultstore provision" in (fs_env / "vaultstore.log").read_text()


def test_show_config_masks_credential(runner, provisioned_env, monkeypatch):
    monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "AccountName=x;AccountKey=topsecretkey==")

    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 0, result.output
    assert "topsecret" not in result.output
    assert "container: thevault" in result.output


def test_log_file_records_actions(runner, provisioned_env):
    (provisioned_env / "a.txt").write_text("a")
    runner.invoke(app, ["upload", "a.txt"])

    lines = (provisioned_env / "vaultstore.log").read_text().splitlines()

    assert all(re.match(r"^\[\d{4}-\d\d-\d\d \d\d:\d\d:\d\d\] [A-Z]+ ", line) for line in lines)
    assert any("SUCCESS: Uploaded" in line for line in lines)
    assert not any("fs://" in line for line in lines)


# ========== main() exit codes ==========

def test_main_success(monkeypatch, fs_env):
    assert _run_main(monkeypatch, "provision") == 0


@pytest.mark.parametrize(
    "args",
    [
        ("upload",),                       # missing local file argument
        ("upload", "a", "b", "c"),         # too many arguments
        ("download",),
        ("delete",),
        ("delete", "a", "b"),
        ("list", "extra"),
        ("frobnicate",),                   # unknown command
    ],
)
def test_main_usage_errors_exit_1(monkeypatch, fs_env, args):
    assert _run_main(monkeypatch, *args) == 1
    assert "Invalid usage" in Path("vaultstore.log").read_text()


def test_main_command_failure_exit_1(monkeypatch, fs_env):
    assert _run_main(monkeypatch, "list") == 1
