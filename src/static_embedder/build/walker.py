"""Recursive source-tree enumeration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


def walk_files(root: Path | str) -> Iterator[str]:
    """Yield POSIX paths of regular files under ``root``, relative to it.

    Symlinks are skipped with a warning. Order follows directory enumeration;
    every call re-walks the tree.
    """
    root_path = Path(root)
    for entry in root_path.iterdir():
        if entry.is_symlink():
            logger.warning("EMBED symlinks are unsupported, skipping path=%s", entry)
            continue
        if entry.is_file():
            yield entry.name
            continue
        if entry.is_dir():
            for child in walk_files(entry):
                yield f"{entry.name}/{child}"
            continue
        logger.debug("EMBED skip non-regular entry path=%s", entry)
