"""Filesystem implementation of the content-addressed original store.

Originals live at ``<orig_path>/<namespace>/<prefix>/<name>.<ext>`` where the
prefix is the first two characters of the content checksum. Names are unique
within a shard; colliding names get a numeric suffix before the extension.
"""

import re
import shutil
from collections.abc import Callable
from pathlib import Path

from aws_lambda_powertools import Logger

from image_storage.models.config import StorageSettings
from image_storage.models.errors import (
    IdentifierError,
    ImageExtensionError,
    NotFoundError,
    StorageIOError,
)
from image_storage.models.image import ImageHandle, ImageHandleFactory
from image_storage.models.upload import UploadSource
from image_storage.naming.identifier import decode, escape_name, transform_pattern
from image_storage.naming.sanitize import fix_name
from image_storage.repositories.storage_repository import OriginalStorageRepository
from image_storage.utils.checksum import (
    ContentHasher,
    FileHasher,
    sha1_content,
    sha1_file,
)
from image_storage.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_WRITE_FAILED,
    PREFIX_LENGTH,
)
from image_storage.utils.files import (
    ensure_directory,
    link_exclusive,
    resolve_within,
    temporary_sibling,
)
from image_storage.utils.mime import detect_mime_type, extension_for_mime_type

logger = Logger(UTC=True)

_EXTENSION_RE = re.compile(r"^(?P<stem>.+)(?P<extension>\.[^.]+)$")

_MAGIC_HEAD_SIZE = 16


def split_extension(name: str) -> tuple[str, str]:
    """Split ``photo.2.jpg`` into ``("photo.2", ".jpg")``.

    Raises:
        ImageExtensionError: If the name has no extension
    """
    match = _EXTENSION_RE.match(name)
    if match is None:
        raise ImageExtensionError(
            message=f"Error defining image extension ({name})",
            details={"name": name},
        )
    return match.group("stem"), match.group("extension")


class FileSystemOriginalStorage(OriginalStorageRepository):
    """Original image store backed by a local directory tree."""

    def __init__(
        self,
        settings: StorageSettings,
        handles: ImageHandleFactory,
        *,
        hash_file: FileHasher = sha1_file,
        hash_content: ContentHasher = sha1_content,
    ) -> None:
        self.settings = settings
        self.handles = handles
        self._hash_file = hash_file
        self._hash_content = hash_content

    def save_upload(
        self,
        *,
        upload: UploadSource,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        source = upload.temporary_file
        if not source.is_file():
            raise NotFoundError(
                message="Uploaded file not found",
                details={"path": str(source)},
            )

        if not checksum:
            checksum = self._hash_file(str(source))

        with source.open("rb") as f:
            head = f.read(_MAGIC_HEAD_SIZE)

        name = self._resolve_name(upload.untrusted_name, head)
        identifier = self._publish(
            name=name,
            namespace=namespace,
            checksum=checksum,
            write=lambda tmp: shutil.copyfile(source, tmp),
        )
        source.unlink(missing_ok=True)

        return self.handles.build(identifier, sha=checksum, name=name)

    def save_content(
        self,
        *,
        content: bytes,
        name: str,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        if not checksum:
            checksum = self._hash_content(content)

        fixed_name = self._resolve_name(name, content[:_MAGIC_HEAD_SIZE])
        identifier = self._publish(
            name=fixed_name,
            namespace=namespace,
            checksum=checksum,
            write=lambda tmp: tmp.write_bytes(content),
        )

        return self.handles.build(identifier, sha=checksum, name=fixed_name)

    def get_save_path(
        self,
        *,
        name: str,
        namespace: str,
        checksum: str,
    ) -> tuple[Path, str]:
        prefix = checksum[:PREFIX_LENGTH]
        self._validate_shard(namespace, prefix)
        directory = resolve_within(self.settings.originals_root, f"{namespace}/{prefix}")
        ensure_directory(directory, self.settings.dir_mode)

        stem, extension = split_extension(name)

        # name.ext, name.2.ext, name.3.ext, ... each step replaces the
        # previous numeric suffix, so only the counter's digits grow
        candidate = stem
        counter = 1
        while (directory / f"{candidate}{extension}").exists():
            counter += 1
            candidate = f"{stem}.{counter}"

        filename = f"{candidate}{extension}"
        return directory / filename, "/".join([namespace, prefix, filename])

    def delete(
        self,
        *,
        identifier: str,
        only_changed: bool = False,
    ) -> None:
        """Remove an original and its derivatives.

        In a shared root, derivatives are found by name within the shard: only
        files with the original's extension or the modern output format match,
        and of those without a transform suffix only the original itself.
        Two originals that differ only by extension share their modern-format
        derivatives, so deleting one also drops those cached files.
        """
        descriptor = decode(identifier)
        pattern = transform_pattern(descriptor.name)
        extensions = {descriptor.extension, self.settings.modern_format}
        directory = self.settings.data_path / descriptor.namespace / descriptor.prefix
        original_file = descriptor.filename

        logger.debug(
            "Deleting image",
            extra={"identifier": identifier, "only_changed": only_changed},
        )

        try:
            if self.settings.shared_root:
                if not directory.exists():
                    return

                for entry in directory.iterdir():
                    match = pattern.match(entry.name)
                    if not entry.is_file() or match is None:
                        continue
                    if match.group("extension") not in extensions:
                        continue
                    is_derivative = (
                        match.group("width") is not None
                        or match.group("quality") is not None
                    )
                    if not is_derivative and entry.name != original_file:
                        continue
                    if only_changed and entry.name == original_file:
                        continue
                    entry.unlink(missing_ok=True)
            else:
                if not only_changed:
                    original = (
                        self.settings.originals_root
                        / descriptor.namespace
                        / descriptor.prefix
                        / original_file
                    )
                    original.unlink(missing_ok=True)

                if directory.exists():
                    shutil.rmtree(directory)

        except OSError as exc:
            logger.exception("Failed to delete image", extra={"identifier": identifier})
            raise StorageIOError(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"identifier": identifier},
            ) from exc

        logger.info("Image deleted successfully", extra={"identifier": identifier})

    @staticmethod
    def _validate_shard(namespace: str, prefix: str) -> None:
        """Reject namespaces and prefixes that do not form a plain relative path.

        Raises:
            IdentifierError: On empty, ``.`` or ``..`` namespace segments, or a
                prefix that is not exactly two path-safe characters
        """
        if any(segment in ("", ".", "..") for segment in namespace.split("/")):
            raise IdentifierError(
                message=f"Invalid namespace '{namespace}'",
                details={"namespace": namespace},
            )
        if len(prefix) != PREFIX_LENGTH or "/" in prefix or prefix == "..":
            raise IdentifierError(
                message=f"Checksum must start with {PREFIX_LENGTH} path-safe characters",
                details={"prefix": prefix},
            )

    def _resolve_name(self, name: str, head: bytes) -> str:
        """Sanitize ``name`` and make sure it carries an extension.

        A missing extension is recovered from the content's magic bytes.

        Raises:
            ImageExtensionError: If no extension can be determined
        """
        fixed = fix_name(name)
        if _EXTENSION_RE.match(fixed):
            stem, extension = split_extension(fixed)
            return escape_name(stem) + extension

        try:
            extension = extension_for_mime_type(detect_mime_type(head))
        except ValueError as exc:
            logger.warning("Unable to determine image extension", extra={"name": name})
            raise ImageExtensionError(
                message=f"Error defining image extension ({name})",
                details={"name": name},
            ) from exc

        return f"{escape_name(fixed or 'image')}.{extension}"

    def _publish(
        self,
        *,
        name: str,
        namespace: str,
        checksum: str,
        write: Callable[[Path], object],
    ) -> str:
        """Write content to a temporary file and claim the first free name."""
        path, identifier = self.get_save_path(
            name=name, namespace=namespace, checksum=checksum
        )

        try:
            with temporary_sibling(path) as tmp:
                write(tmp)
                while not link_exclusive(tmp, path):
                    logger.debug("Save path taken concurrently", extra={"path": str(path)})
                    path, identifier = self.get_save_path(
                        name=name, namespace=namespace, checksum=checksum
                    )
        except OSError as exc:
            logger.exception("Failed to store original", extra={"path": str(path)})
            raise StorageIOError(
                message="Unable to store image at this time",
                error_code=ERROR_CODE_IMAGE_WRITE_FAILED,
                details={"identifier": identifier},
            ) from exc

        logger.info(
            "Original stored successfully",
            extra={"identifier": identifier, "checksum": checksum},
        )
        return identifier
