"""Filesystem helpers shared by the original store and the derivative cache.

Writes never expose partially written files under their final name: content
goes to a hidden temporary file in the target directory first and is then
either renamed over the target (last writer wins) or hard-linked to it
(first writer wins).
"""

import os
import shutil
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from aws_lambda_powertools import Logger

from image_storage.models.errors import IdentifierError, StorageIOError
from image_storage.utils.constants import (
    ERROR_CODE_DIRECTORY_CREATE_FAILED,
    ERROR_CODE_IMAGE_WRITE_FAILED,
    TEMP_FILE_PREFIX,
)

logger = Logger(UTC=True)


def default_file_mode() -> int:
    """Mode a plain ``open()`` would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# Fixed at import time
FILE_MODE = default_file_mode()


def ensure_directory(path: Path, mode: int) -> None:
    """Create a directory tree; an existing directory is not an error.

    Raises:
        StorageIOError: If the directory cannot be created
    """
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as exc:
        logger.exception("Failed to create directory", extra={"path": str(path)})
        raise StorageIOError(
            message="Unable to create storage directory",
            error_code=ERROR_CODE_DIRECTORY_CREATE_FAILED,
            details={"path": str(path)},
        ) from exc


@contextmanager
def temporary_sibling(target: Path) -> Iterator[Path]:
    """Yield a hidden temporary path next to ``target``, removed on exit.

    The temporary name keeps the target's suffix so format detection by
    extension keeps working. The file gets ``FILE_MODE`` instead of the
    private mode ``mkstemp`` uses, since it is published as is.
    """
    fd, name = tempfile.mkstemp(
        dir=target.parent,
        prefix=TEMP_FILE_PREFIX,
        suffix=target.suffix,
    )
    os.close(fd)
    tmp = Path(name)
    try:
        os.chmod(tmp, FILE_MODE)
        yield tmp
    finally:
        tmp.unlink(missing_ok=True)


def replace_atomic(target: Path, write: Callable[[Path], None]) -> None:
    """Write through ``write(tmp)`` and rename the result over ``target``.

    Raises:
        StorageIOError: If writing or renaming fails
    """
    try:
        with temporary_sibling(target) as tmp:
            write(tmp)
            os.replace(tmp, target)
    except OSError as exc:
        logger.exception("Failed to write file", extra={"path": str(target)})
        raise StorageIOError(
            message="Unable to write image file",
            error_code=ERROR_CODE_IMAGE_WRITE_FAILED,
            details={"path": str(target)},
        ) from exc


def atomic_copy(source: Path, target: Path) -> None:
    """Copy ``source`` to ``target`` without exposing a partial copy."""
    replace_atomic(target, lambda tmp: shutil.copyfile(source, tmp))


def copy_if_missing(source: Path, target: Path, mode: int) -> bool:
    """Copy ``source`` to ``target`` unless the target already exists.

    Returns:
        True when a copy was made
    """
    if target.exists():
        return False
    ensure_directory(target.parent, mode)
    atomic_copy(source, target)
    return True


def link_exclusive(tmp: Path, target: Path) -> bool:
    """Publish ``tmp`` under ``target`` unless ``target`` already exists.

    Returns:
        True when the link was created, False when another writer won
    """
    try:
        os.link(tmp, target)
    except FileExistsError:
        return False
    return True


def resolve_within(root: Path, identifier: str) -> Path:
    """Join ``identifier`` to ``root``, refusing paths that leave ``root``.

    Raises:
        IdentifierError: If the identifier is absolute or climbs out of root
    """
    candidate = (root / identifier.lstrip("/")).resolve()
    if not candidate.is_relative_to(root.resolve()):
        raise IdentifierError(
            message=f"Image identifier '{identifier}' points outside the storage root",
            details={"identifier": identifier},
        )
    return root / identifier.lstrip("/")
