"""Placeholder image served when a requested original is missing.

The placeholder is an ordinary original stored under the well-known
``noimage_identifier``; it is written once from the embedded PNG and then
resized through the derivative cache like any other image.
"""

import os
from pathlib import Path
from typing import Literal, overload

from aws_lambda_powertools import Logger

from image_storage.models.config import StorageSettings
from image_storage.models.descriptor import TransformDescriptor
from image_storage.models.errors import FallbackError, StorageIOError
from image_storage.models.image import ImageHandle, ImageHandleFactory
from image_storage.naming.identifier import decode
from image_storage.repositories.codec_repository import ImageCodec
from image_storage.utils.files import copy_if_missing, ensure_directory, replace_atomic
from image_storage.utils.noimage import NOIMAGE_PNG

logger = Logger(UTC=True)


class FallbackService:
    """Application service responsible for the placeholder image."""

    def __init__(
        self,
        settings: StorageSettings,
        codec: ImageCodec,
        handles: ImageHandleFactory,
    ) -> None:
        self.settings = settings
        self.codec = codec
        self.handles = handles

    @overload
    def get_fallback(self, materialize: Literal[True]) -> ImageHandle: ...

    @overload
    def get_fallback(
        self, materialize: Literal[False]
    ) -> tuple[TransformDescriptor, Path]: ...

    def get_fallback(
        self, materialize: bool
    ) -> ImageHandle | tuple[TransformDescriptor, Path]:
        """Return the placeholder, creating it on first use.

        Args:
            materialize: True for a ready handle in the derivative tree, False
                for the raw ``(descriptor, path)`` pair to resize from

        Raises:
            FallbackError: If the placeholder cannot be written
        """
        identifier = self.settings.noimage_identifier
        descriptor = decode(identifier)
        path = self.settings.originals_root / identifier

        if not path.exists():
            self._create_placeholder(path, descriptor)

        if materialize:
            copy_if_missing(
                path,
                self.settings.data_path / identifier,
                self.settings.dir_mode,
            )
            return self.handles.build(identifier)

        return descriptor, path

    def _create_placeholder(self, path: Path, descriptor: TransformDescriptor) -> None:
        directory = path.parent

        try:
            ensure_directory(directory, self.settings.dir_mode)
        except StorageIOError as exc:
            raise FallbackError(
                message=(
                    f"Could not create default {descriptor.filename}. "
                    f"{directory} does not exist or is not writable."
                ),
                details={"path": str(directory)},
            ) from exc

        if not os.access(directory, os.W_OK):
            raise FallbackError(
                message=(
                    f"Could not create default {descriptor.filename}. "
                    f"{directory} does not exist or is not writable."
                ),
                details={"path": str(directory)},
            )

        quality = descriptor.quality
        if quality is None:
            quality = self.settings.quality.for_format(descriptor.extension)

        raster = self.codec.from_bytes(NOIMAGE_PNG)
        replace_atomic(path, lambda tmp: raster.save(tmp, quality))

        logger.info("Placeholder image created", extra={"path": str(path)})
