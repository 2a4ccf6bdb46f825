"""Resource name generation and validation."""

import random
import re
import time
from typing import Optional

from .constants import ACCOUNT_NAME_MAX, ACCOUNT_NAME_MIN, RANDOM_TOKEN_MAX
from .errors import ConfigError

_ACCOUNT_RE = re.compile(r"^[a-z0-9]{3,24}$")
_CONTAINER_RE = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){2,62}$")

TOKEN_STRATEGIES = ("timestamp", "random")


def uniqueness_token(strategy: str = "timestamp") -> str:
    """Return a token that makes an account name globally unique.

    Args:
        strategy: "timestamp" (UNIX seconds) or "random" (0..32767)
    """
    if strategy == "timestamp":
        return str(int(time.time()))
    if strategy == "random":
        return str(random.randint(0, RANDOM_TOKEN_MAX))
    raise ConfigError(
        f"Unknown name strategy '{strategy}', expected one of {', '.join(TOKEN_STRATEGIES)}"
    )


def generate_account_name(
    base: str,
    token: Optional[str] = None,
    strategy: str = "timestamp",
) -> str:
    """Build a storage account name from a base string and a uniqueness token.

    The base is lowercased and stripped of anything that is not a letter
    or digit, then truncated so that base + token fits in 24 characters.

    Examples:
        generate_account_name("vaultstore", token="1700000000") -> "vaultstore1700000000"
        generate_account_name("The-Vault Storage", token="42") -> "thevaultstorage42"

    Raises:
        ConfigError: If the resulting name is not a valid account name
    """
    if token is None:
        token = uniqueness_token(strategy)
    clean_base = re.sub(r"[^a-z0-9]", "", base.lower())
    clean_token = re.sub(r"[^a-z0-9]", "", str(token).lower())
    if len(clean_token) >= ACCOUNT_NAME_MAX:
        raise ConfigError(f"Uniqueness token too long for an account name: {token}")

    name = clean_base[: ACCOUNT_NAME_MAX - len(clean_token)] + clean_token
    validate_account_name(name)
    return name


def validate_account_name(name: str) -> str:
    """Check a storage account name: lowercase alphanumeric, 3-24 chars."""
    if not _ACCOUNT_RE.fullmatch(name or ""):
        raise ConfigError(
            f"Invalid storage account name '{name}': must be "
            f"{ACCOUNT_NAME_MIN}-{ACCOUNT_NAME_MAX} lowercase letters or digits"
        )
    return name


def validate_container_name(name: str) -> str:
    """Check a container name against the blob service naming rules.

    3-63 characters of lowercase letters, digits and single hyphens,
    starting and ending with a letter or digit.
    """
    if not _CONTAINER_RE.fullmatch(name or ""):
        raise ConfigError(
            f"Invalid container name '{name}': use 3-63 lowercase letters, digits "
            f"or single hyphens, starting and ending with a letter or digit"
        )
    return name
