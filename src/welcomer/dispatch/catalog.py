"""
Discovery of event handler modules on disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from welcomer.errors import DirectoryNotFound
from welcomer.util.logger import get_logger

logger = get_logger("module_catalog")

SKIPPED_DIRECTORIES = {"__pycache__"}


def _is_candidate(path: Path, extension: str) -> bool:
    # "_" marks package files and private helpers, never handlers
    return path.suffix == extension and not path.name.startswith("_")


def _walk(directory: Path, extension: str) -> List[Path]:
    files: List[Path] = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if entry.name not in SKIPPED_DIRECTORIES:
                files.extend(_walk(entry, extension))
        elif entry.is_file() and _is_candidate(entry, extension):
            files.append(entry)
    return files


def scan(root_dir: Path, extension: str) -> List[Path]:
    """
    Recursively collect handler files under ``root_dir``.

    Raises:
        DirectoryNotFound: ``root_dir`` does not exist or is not a directory.
    """
    if not root_dir.is_dir():
        raise DirectoryNotFound(root_dir)
    return _walk(root_dir, extension)


def discover(root_dir: Path, extension: str) -> List[Path]:
    """
    Return every handler file under ``root_dir`` with the given extension.

    Subdirectories are visited depth-first in name order, so the result is
    stable between runs. A missing root is logged and yields an empty list.

    Args:
        root_dir: Directory tree to scan.
        extension: The single file suffix active for this environment, e.g. ``.py``.
    """
    try:
        files = scan(Path(root_dir), extension)
    except DirectoryNotFound as exc:
        logger.warning("[MODULE CATALOG] %s", exc)
        return []

    logger.debug("[MODULE CATALOG] Found %d %s handler file(s) under %s", len(files), extension, root_dir)
    return files
