# dirmatrix/core/discovery/enumerator.py
import os
from pathlib import Path
from typing import List
import structlog

from dirmatrix.exceptions import DiscoveryError, NotFoundError

log = structlog.get_logger(__name__)


def list_subdirectories(root_path: Path) -> List[str]:
    """
    Returns the names of the immediate child directories of `root_path`,
    sorted by name. Files and other entries are skipped; nothing below the
    first level is visited. Symlinks are not followed, so a link to a
    directory is skipped like a file.

    Raises:
        NotFoundError: if `root_path` does not exist or is not a directory.
        DiscoveryError: if the directory cannot be listed.
    """
    if not root_path.exists():
        raise NotFoundError(f"Directory does not exist: {root_path}")
    if not root_path.is_dir():
        raise NotFoundError(f"Path is not a directory: {root_path}")

    log.info("scanning_directory_for_subdirectories", path=str(root_path))
    try:
        with os.scandir(root_path) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise DiscoveryError(f"failed to list directory '{root_path}': {e}") from e

    log.info("directory_entries_found", count=len(entries))

    subdirectories: List[str] = []
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as e:
            log.warning("entry_type_check_failed", name=entry.name, error=str(e))
            continue
        if not is_dir:
            log.info("skipping_entry", name=entry.name, reason="not a directory")
            continue
        subdirectories.append(entry.name)
    return subdirectories
