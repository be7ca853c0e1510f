"""Public entry point wiring the store, the derivative cache and the planners."""

from typing import Any

from aws_lambda_powertools import Logger

from image_storage.infrastructure.filesystem.original_storage import (
    FileSystemOriginalStorage,
)
from image_storage.infrastructure.pillow.codec import PillowCodec
from image_storage.models.config import StorageSettings
from image_storage.models.image import ImageHandle, ImageHandleFactory
from image_storage.models.request import ImageRequest
from image_storage.models.upload import UploadSource
from image_storage.repositories.codec_repository import ImageCodec
from image_storage.services.derivative_service import DerivativeService
from image_storage.services.fallback_service import FallbackService
from image_storage.services.srcset_service import SrcsetService
from image_storage.utils.checksum import (
    ContentHasher,
    FileHasher,
    sha1_content,
    sha1_file,
)

logger = Logger(UTC=True)


class ImageStorage:
    """Facade over the image storage components.

    Example::

        storage = ImageStorage(StorageSettings(data_path=Path("www/data")))
        handle = storage.save_content(content=data, name="Photo.JPG", namespace="users")
        thumb = storage.from_identifier([handle.identifier, "200x200", "exact"])
        print(thumb.create_link())
    """

    def __init__(
        self,
        settings: StorageSettings,
        *,
        codec: ImageCodec | None = None,
        hash_file: FileHasher = sha1_file,
        hash_content: ContentHasher = sha1_content,
    ) -> None:
        self.settings = settings
        self.codec = codec or PillowCodec()
        self.handles = ImageHandleFactory(
            data_path=settings.data_path,
            data_dir=settings.data_dir,
            friendly_url=settings.friendly_url,
        )

        self.originals = FileSystemOriginalStorage(
            settings,
            self.handles,
            hash_file=hash_file,
            hash_content=hash_content,
        )
        self.fallback = FallbackService(settings, self.codec, self.handles)
        self.derivatives = DerivativeService(
            settings, self.codec, self.handles, self.fallback
        )
        self.srcset = SrcsetService(settings, self.codec, self.derivatives)

    def set_friendly_url(self, friendly_url: bool = True) -> None:
        """Switch link style for every handle built from now on."""
        self.handles.friendly_url = friendly_url

    def save_upload(
        self,
        upload: UploadSource,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        return self.originals.save_upload(
            upload=upload, namespace=namespace, checksum=checksum
        )

    def save_content(
        self,
        content: bytes,
        name: str,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        return self.originals.save_content(
            content=content, name=name, namespace=namespace, checksum=checksum
        )

    def from_identifier(self, args: Any) -> ImageHandle:
        """Resolve an identifier, optionally resized.

        Args:
            args: An :class:`ImageRequest`, an identifier string, a positional
                list ``[path, size, flag, quality, convert_to_modern]`` or a
                mapping with the same keys

        Returns:
            Handle to the original or derivative, or a terminal handle

        Raises:
            SizeFormatError: If the size cannot be parsed
            ResizeFlagError: If the flag contains an unknown token
            StorageIOError: If a file cannot be written
        """
        request = ImageRequest.from_args(args)
        return self.derivatives.resolve(request)

    def get_no_image(self, materialize: bool = True) -> Any:
        """Return the placeholder as a handle, or as ``(descriptor, path)``."""
        return self.fallback.get_fallback(materialize)

    def delete(
        self,
        image: ImageHandle | str,
        only_changed: bool = False,
    ) -> None:
        """Delete an original and its derivatives.

        Args:
            image: Handle or identifier of the original
            only_changed: Keep the untransformed file, remove derivatives only
        """
        identifier = image.identifier if isinstance(image, ImageHandle) else image
        self.originals.delete(identifier=identifier, only_changed=only_changed)

    def create_srcset(
        self,
        identifier: str,
        sizes: list[str],
        path_prefix: str = "",
        flag: str | None = None,
        quality: int | None = None,
        convert_to_modern: bool = True,
    ) -> str:
        return self.srcset.create_srcset(
            identifier,
            sizes,
            path_prefix,
            flag=flag,
            quality=quality,
            convert_to_modern=convert_to_modern,
        )

    def create_image_attributes(self, args: Any, path_prefix: str = "") -> str:
        """Render ``src``/``srcset`` attributes from loosely shaped arguments."""
        request = ImageRequest.from_args(args)
        return self.srcset.create_image_attributes(request, path_prefix)
