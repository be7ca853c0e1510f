"""Abstract contract for the raster image codec."""

from abc import ABC, abstractmethod
from pathlib import Path


class RasterImage(ABC):
    """A decoded image that can be transformed and written out.

    Transform methods return the image itself so calls can be chained.
    """

    @property
    @abstractmethod
    def size(self) -> tuple[int, int]:
        """Current ``(width, height)``."""

    @abstractmethod
    def crop(self, left: int, top: int, right: int, bottom: int) -> "RasterImage":
        """Keep only the ``(left, top, right, bottom)`` box."""

    @abstractmethod
    def resize(self, width: int, height: int, flags: int) -> "RasterImage":
        """Resize towards ``width`` x ``height`` according to the flag bitmask."""

    @abstractmethod
    def sharpen(self) -> "RasterImage":
        """Apply the fixed sharpening pass."""

    @abstractmethod
    def save(self, path: Path, quality: int | None) -> None:
        """Encode to ``path``; the format follows the path's extension.

        Raises:
            OSError: If the file cannot be written
            ImageDecodeError: If the extension has no encoder
        """


class ImageCodec(ABC):
    """Decodes image files into :class:`RasterImage` objects."""

    @abstractmethod
    def open(self, path: Path) -> RasterImage:
        """Decode an image file.

        Raises:
            ImageDecodeError: If the file is not a supported image
        """

    @abstractmethod
    def from_bytes(self, data: bytes) -> RasterImage:
        """Decode in-memory image bytes.

        Raises:
            ImageDecodeError: If the bytes are not a supported image
        """

    @abstractmethod
    def probe_dimensions(self, path: Path) -> tuple[int, int] | None:
        """Return ``(width, height)`` without decoding pixels, None if unreadable."""
