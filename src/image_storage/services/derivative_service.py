"""Business logic for on-demand derivative generation.

A derivative's path is a pure function of the source identifier and the
transform, so an existing file is always the right answer and no image work
is repeated. Concurrent misses for the same transform may both render and
write; the rename makes the last complete write win and both produce the same
bytes.
"""

from pathlib import Path

from aws_lambda_powertools import Logger

from image_storage.models.config import StorageSettings
from image_storage.models.descriptor import TransformDescriptor
from image_storage.models.errors import ImageDecodeError, NotFoundError
from image_storage.models.image import ImageHandle, ImageHandleFactory
from image_storage.models.request import ImageRequest
from image_storage.naming.identifier import (
    decode,
    decode_flag,
    decode_size_spec,
    encode,
)
from image_storage.repositories.codec_repository import ImageCodec
from image_storage.services.fallback_service import FallbackService
from image_storage.utils.constants import CONVERTIBLE_EXTENSIONS
from image_storage.utils.files import (
    copy_if_missing,
    ensure_directory,
    replace_atomic,
    resolve_within,
)

logger = Logger(UTC=True)


class DerivativeService:
    """Application service resolving image requests to files on disk.

    This service orchestrates:
    - Passing untransformed originals through to the public tree
    - Falling back to the placeholder for missing sources
    - Naming, rendering and caching resized variants
    """

    def __init__(
        self,
        settings: StorageSettings,
        codec: ImageCodec,
        handles: ImageHandleFactory,
        fallback: FallbackService,
    ) -> None:
        self.settings = settings
        self.codec = codec
        self.handles = handles
        self.fallback = fallback

    def resolve(self, request: ImageRequest) -> ImageHandle:
        """Return a handle to the requested image, rendering it if needed.

        The resolution flow is:
        1. Without a size, pass the original through (or the placeholder)
        2. Parse the size and the resize flag
        3. Pick the source, switching to the placeholder when it is missing
        4. Apply the transform and the output format to the descriptor
        5. Return the cached file if the derived path exists
        6. Otherwise decode, crop, resize, sharpen and write the derivative

        Args:
            request: Identifier and transform parameters

        Returns:
            Handle to the derived file, or a terminal handle when the source
            is missing or not a decodable image

        Raises:
            SizeFormatError: If the size cannot be parsed
            ResizeFlagError: If the flag contains an unknown token
            StorageIOError: If the derivative cannot be written
        """
        identifier = request.path

        if not request.size:
            return self._resolve_original(identifier)

        width, height, crop = decode_size_spec(request.size)
        flag = request.flag or self.settings.default_transform
        flag_bits = decode_flag(flag, self.settings.resize_flags)

        descriptor, source, is_fallback = self._resolve_source(identifier)

        descriptor.set_size((width, height))
        descriptor.set_crop(crop)
        descriptor.set_flag(flag)

        if (
            request.convert_to_modern
            and not is_fallback
            and descriptor.extension in CONVERTIBLE_EXTENSIONS
        ):
            descriptor.set_extension(self.settings.modern_format)

        quality = request.quality
        if quality is None:
            quality = self.settings.quality.for_format(descriptor.extension)
        descriptor.set_quality(quality)

        derived_identifier = encode(descriptor)
        target = self.settings.data_path / derived_identifier

        if target.exists():
            logger.debug("Derivative cache hit", extra={"identifier": derived_identifier})
            return self.handles.build(derived_identifier, descriptor=descriptor)

        if not source.exists():
            logger.warning("Source image not found", extra={"path": str(source)})
            return ImageHandle.not_found()

        try:
            raster = self.codec.open(source)
        except NotFoundError:
            logger.warning("Source image vanished", extra={"path": str(source)})
            return ImageHandle.not_found()
        except ImageDecodeError:
            logger.warning("Source image has unknown format", extra={"path": str(source)})
            return ImageHandle.unknown_format()

        if crop is not None and not is_fallback:
            raster.crop(*crop)

        raster.resize(width, height, flag_bits).sharpen()

        ensure_directory(target.parent, self.settings.dir_mode)
        try:
            replace_atomic(target, lambda tmp: raster.save(tmp, quality))
        except ImageDecodeError:
            logger.warning("Cannot encode derivative", extra={"identifier": derived_identifier})
            return ImageHandle.unknown_format()

        logger.info(
            "Derivative generated",
            extra={"source": str(source), "identifier": derived_identifier},
        )
        return self.handles.build(derived_identifier, descriptor=descriptor)

    def _resolve_original(self, identifier: str | None) -> ImageHandle:
        """Expose an original in the derivative tree without touching pixels."""
        if not identifier:
            return self.fallback.get_fallback(materialize=True)

        source = resolve_within(self.settings.originals_root, identifier)
        if not source.is_file():
            logger.debug("Original not found, serving placeholder", extra={"identifier": identifier})
            return self.fallback.get_fallback(materialize=True)

        copy_if_missing(
            source,
            resolve_within(self.settings.data_path, identifier),
            self.settings.dir_mode,
        )
        return self.handles.build(identifier)

    def _resolve_source(
        self, identifier: str | None
    ) -> tuple[TransformDescriptor, Path, bool]:
        """Return ``(descriptor, source path, is_fallback)`` for a sized request."""
        if identifier:
            source = resolve_within(self.settings.originals_root, identifier)
            if source.is_file():
                return decode(identifier), source, False

        logger.debug("Serving placeholder for missing source", extra={"identifier": identifier})
        descriptor, source = self.fallback.get_fallback(materialize=False)
        return descriptor, source, True
