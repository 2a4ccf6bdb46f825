"""Shared test fixtures and utilities."""

import logging
from pathlib import Path

import pytest

from vaultstore.blob_operator import BlobOperator
from vaultstore.config import ENV_OVERRIDES, VaultConfig
from vaultstore.logs import LOGGER_NAME
from vaultstore.provisioner import Provisioner
from vaultstore.storage.fs import FilesystemBlobStore, FilesystemResourceProvider


class CapturingLog:
    """ActionLog sink that keeps every record in memory."""

    def __init__(self):
        self.records = []

    def log(self, level, msg):
        self.records.append((level, msg))

    def messages(self, level=None):
        return [m for lvl, m in self.records if level is None or lvl == level]

    def contains(self, text, level=None):
        return any(text in m for m in self.messages(level))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's AZURE_* / VAULTSTORE_* settings out of tests."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers attached by configure_logging during a test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_vaultstore", False):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def capture_log():
    return CapturingLog()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty working directory, made the cwd."""
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def fs_config(tmp_path, workdir):
    """Config for the filesystem provider rooted in tmp_path/cloud."""
    return VaultConfig(
        provider="fs",
        fs_root=str(tmp_path / "cloud"),
        names_file=str(workdir / "storage_name.txt"),
        log_file=str(workdir / "vaultstore.log"),
    )


@pytest.fixture
def fs_provider(fs_config):
    return FilesystemResourceProvider(Path(fs_config.fs_root))


@pytest.fixture
def provisioned(fs_config, fs_provider, capture_log):
    """Run provisioning once and return its result."""
    return Provisioner(fs_config, fs_provider, log=capture_log).provision()


@pytest.fixture
def store(provisioned):
    return FilesystemBlobStore(provisioned.credential, provisioned.container.name)


@pytest.fixture
def operator(store, capture_log):
    return BlobOperator(store, log=capture_log)


@pytest.fixture
def write_file(workdir):
    """Factory fixture to write files relative to the working directory."""
    def _write(path: str, content: bytes = b"test content"):
        file_path = workdir / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content)
        return file_path
    return _write
