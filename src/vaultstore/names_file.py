"""Plaintext record of provisioned resource names.

Three lines, consumed by later steps (CI jobs, the blob commands):

    <storage account>
    <container>
    <resource group>
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .errors import ConfigError
from .utils import atomic_write


class RecordedNames(BaseModel):
    account_name: str
    container: str
    resource_group: str


def write_names_file(path: Path, names: RecordedNames) -> None:
    text = f"{names.account_name}\n{names.container}\n{names.resource_group}\n"
    atomic_write(Path(path), lambda f: f.write(text.encode()))


def read_names_file(path: Path) -> Optional[RecordedNames]:
    """Read recorded names, or None if nothing was provisioned yet.

    Raises:
        ConfigError: If the file exists but is malformed
    """
    path = Path(path)
    if not path.exists():
        return None

    lines = [line.strip() for line in path.read_text().splitlines() if line.strip()]
    if len(lines) < 3:
        raise ConfigError(
            f"{path} is malformed: expected account, container and resource group lines"
        )
    return RecordedNames(account_name=lines[0], container=lines[1], resource_group=lines[2])
