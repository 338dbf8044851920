"""
Filesystem helpers for rscpatch.

Reading and writing go through :func:`safe_read_file` and
:func:`safe_write_file`, which normalize every failure to
:class:`~rscpatch.exceptions.FileOperationError`. Writes are atomic and
keep a timestamped backup of the previous content.

The walkers below (:func:`iter_project_dirs`, :func:`find_package_jsons`)
never descend into build output, VCS metadata or ``node_modules``.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Union

from rscpatch.utils.logger import get_logger
from rscpatch.exceptions import FileOperationError
from rscpatch.constants import (
    LOCKFILE_CANDIDATES,
    MANIFEST_FILENAME,
    MAX_FILE_SIZE,
    SKIP_DIRS,
)

logger = get_logger("filesystem")

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Reading and writing
# ---------------------------------------------------------------------------


def _atomic_write(target: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file, then replace ``target``."""
    temp_path: Optional[Path] = None

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(target.parent),
            delete=False,
            prefix=f".{target.name}.",
            suffix=".tmp",
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())

        temp_path.replace(target)

    except OSError as exc:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_exc:
                logger.warning("Failed to remove temporary file %s: %s", temp_path, cleanup_exc)

        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def create_backup(file_path: PathLike) -> Path:
    """Copy ``file_path`` to ``<name>.<timestamp>.backup`` beside it."""
    path = Path(file_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = path.with_name(f"{path.name}.{timestamp}.backup")

    try:
        shutil.copy2(path, backup_path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create backup: {exc}",
            file_path=str(path),
            operation="backup",
            original_error=exc,
        ) from exc

    logger.debug("Backed up %s to %s", path, backup_path)
    return backup_path


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Read a text file, refusing missing, non-regular or oversized files.

    Raises:
        FileOperationError: The file cannot be read.
    """
    path = Path(file_path)

    if not path.is_file():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )

    try:
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise FileOperationError(
                f"File too large: {size} bytes (max {max_size})",
                file_path=str(path),
                operation="read",
            )
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup_file: bool = True,
) -> Optional[Path]:
    """Atomically replace a text file.

    Args:
        file_path: Destination path.
        content: New file content.
        create_backup_file: Copy the existing file aside first.

    Returns:
        The backup path, when one was made.

    Raises:
        FileOperationError: The backup or the write failed. The original
            content is restored from the backup when possible.
    """
    path = Path(file_path)
    backup: Optional[Path] = None

    if create_backup_file and path.is_file():
        backup = create_backup(path)

    try:
        _atomic_write(path, content)
    except FileOperationError:
        if backup is not None:
            try:
                shutil.copy2(backup, path)
            except OSError as exc:
                logger.error("Could not restore %s from %s: %s", path, backup, exc)
        raise

    return backup


# ---------------------------------------------------------------------------
# Project discovery
# ---------------------------------------------------------------------------


def iter_project_dirs(
    root: PathLike,
    skip_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield ``root`` and every directory below it, depth-first.

    Directories named in :data:`~rscpatch.constants.SKIP_DIRS` or
    ``skip_dirs`` are pruned. Unreadable directories are skipped.
    """
    skipped = set(SKIP_DIRS) | set(skip_dirs)
    start = Path(root)

    for dirpath, dirnames, _filenames in os.walk(start, onerror=_log_walk_error):
        dirnames[:] = sorted(name for name in dirnames if name not in skipped)
        yield Path(dirpath)


def _log_walk_error(exc: OSError) -> None:
    logger.debug("Skipping unreadable directory: %s", exc)


def find_package_jsons(
    root: PathLike,
    skip_dirs: Iterable[str] = (),
) -> List[Path]:
    """Return every ``package.json`` under ``root``, in walk order."""
    return [
        directory / MANIFEST_FILENAME
        for directory in iter_project_dirs(root, skip_dirs)
        if (directory / MANIFEST_FILENAME).is_file()
    ]


def find_project_root(start_dir: PathLike) -> Path:
    """Return the nearest directory at or above ``start_dir`` holding a lock file.

    Falls back to ``start_dir`` itself when no ancestor has one.
    """
    start = Path(start_dir).resolve()

    for directory in (start, *start.parents):
        if any((directory / name).is_file() for name in LOCKFILE_CANDIDATES):
            return directory

    return start
