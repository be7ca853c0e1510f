"""Abstract contract for storing original images."""

from abc import ABC, abstractmethod
from pathlib import Path

from image_storage.models.image import ImageHandle
from image_storage.models.upload import UploadSource


class OriginalStorageRepository(ABC):
    """Contract for persisting uploaded originals.

    Implementations could be local disk, a network share, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def save_upload(
        self,
        *,
        upload: UploadSource,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        """Move an uploaded file into the store.

        Args:
            upload: Received file and its client supplied name
            namespace: First identifier segment, e.g. 'avatars'
            checksum: Precomputed digest; computed from the file when omitted

        Returns:
            Handle of the stored original

        Raises:
            ImageExtensionError: If no extension can be determined
            StorageIOError: If the file cannot be written
        """

    @abstractmethod
    def save_content(
        self,
        *,
        content: bytes,
        name: str,
        namespace: str,
        checksum: str | None = None,
    ) -> ImageHandle:
        """Store raw image bytes under a sanitized name.

        Args:
            content: Binary image content
            name: Human-readable file name
            namespace: First identifier segment
            checksum: Precomputed digest; computed from the content when omitted

        Returns:
            Handle of the stored original

        Raises:
            ImageExtensionError: If no extension can be determined
            StorageIOError: If the file cannot be written
        """

    @abstractmethod
    def get_save_path(
        self,
        *,
        name: str,
        namespace: str,
        checksum: str,
    ) -> tuple[Path, str]:
        """Return the first free ``(path, identifier)`` for a sanitized name."""

    @abstractmethod
    def delete(
        self,
        *,
        identifier: str,
        only_changed: bool = False,
    ) -> None:
        """Delete an original and its derivatives.

        Args:
            identifier: Identifier of the original
            only_changed: Keep the untransformed original, drop derivatives only
        """
