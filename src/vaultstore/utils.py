"""Utility functions for vaultstore."""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Optional


def humanize_size(size: float) -> str:
    """Convert bytes to human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a listing timestamp for display.

    Examples:
        datetime(2025, 8, 26, 2, 51, 17, 317839, tzinfo=utc) -> "2025-08-26 02:51:17"
        None -> "-"
    """
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def mask_secret(value: Optional[str], keep: int = 4) -> str:
    """Hide all but the last few characters of a secret."""
    if not value:
        return ""
    if len(value) <= keep:
        return "*" * len(value)
    return "*" * 8 + value[-keep:]


# Marker in temp file names
PARTIAL_MARKER = ".partial-"


def atomic_write(
    final_path: Path,
    write_fn: Callable[[BinaryIO], None],
    tmp_dir: Optional[Path] = None,
) -> None:
    """Write a file atomically: temp file, then rename into place.

    Args:
        final_path: Destination path
        write_fn: Called with the open binary temp file
        tmp_dir: Where the temp file lives (default: beside final_path);
            must be on the same filesystem as final_path

    Raises:
        Exception: Whatever write_fn raises; the temp file is removed first
    """
    final_path.parent.mkdir(parents=True, exist_ok=True)
    staging = tmp_dir or final_path.parent
    staging.mkdir(parents=True, exist_ok=True)

    fd, tmppath = tempfile.mkstemp(
        prefix=f".{final_path.name}{PARTIAL_MARKER}",
        dir=staging,
    )
    try:
        with os.fdopen(fd, "wb") as f:
            write_fn(f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmppath, final_path)
    except Exception:
        try:
            os.unlink(tmppath)
        except OSError:
            pass
        raise
