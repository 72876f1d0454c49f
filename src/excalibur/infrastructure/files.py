"""
File system helpers.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_file(src: Path | str, dst: Path | str) -> None:
    """
    Copy a regular file byte-for-byte, creating parent directories.

    The destination is truncated if it exists, receives the source's
    permission bits, and is fsynced before returning.

    Raises:
        FileNotFoundError: If the source does not exist
        ValueError: If the source is not a regular file or equals the destination
        OSError: If the destination cannot be created, written or synced
    """
    src = Path(src)
    dst = Path(dst)

    source_stat = src.stat()
    if not stat.S_ISREG(source_stat.st_mode):
        raise ValueError(f"source {src} is not a regular file")

    if dst.exists() and src.resolve() == dst.resolve():
        raise ValueError(f"source and destination are the same file: {src}")

    dst.parent.mkdir(mode=0o750, parents=True, exist_ok=True)

    with open(src, "rb") as source, open(dst, "wb") as destination:
        shutil.copyfileobj(source, destination)
        destination.flush()
        os.fsync(destination.fileno())

    # Owner keeps write access: the copy is edited in place afterwards
    os.chmod(dst, stat.S_IMODE(source_stat.st_mode) | stat.S_IWUSR)
    logger.debug("Copied %s -> %s (%d bytes)", src, dst, source_stat.st_size)
