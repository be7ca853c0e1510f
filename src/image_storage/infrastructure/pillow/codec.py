"""Pillow-backed implementation of the image codec."""

import io
from pathlib import Path

from aws_lambda_powertools import Logger
from PIL import Image, ImageFilter, UnidentifiedImageError

from image_storage.models.errors import ImageDecodeError, NotFoundError
from image_storage.repositories.codec_repository import ImageCodec, RasterImage
from image_storage.utils.constants import (
    BIT_EXACT,
    BIT_FILL,
    BIT_SHRINK_ONLY,
    BIT_STRETCH,
)

logger = Logger(UTC=True)

# 3x3 sharpening kernel: centre 24, neighbours -1, normalized by 16
SHARPEN_KERNEL = ImageFilter.Kernel(
    (3, 3),
    (-1, -1, -1, -1, 24, -1, -1, -1, -1),
    scale=16,
)

_DIRECT_MODES = frozenset({"RGB", "RGBA", "L"})


def calculate_size(
    src_width: int,
    src_height: int,
    width: int,
    height: int,
    flags: int,
) -> tuple[int, int]:
    """Compute the output size of a resize.

    Without ``stretch`` the aspect ratio is kept: ``fit`` scales to fit inside
    the box and ``fill`` scales to cover it. ``shrink_only`` never enlarges.
    The result is never smaller than 1x1.
    """
    if flags & BIT_STRETCH:
        new_width: float = width
        new_height: float = height
        if flags & BIT_SHRINK_ONLY:
            new_width = src_width * min(1.0, width / src_width)
            new_height = src_height * min(1.0, height / src_height)
    else:
        scales = [width / src_width, height / src_height]
        if flags & BIT_FILL:
            scales = [max(scales)]
        if flags & BIT_SHRINK_ONLY:
            scales.append(1.0)
        scale = min(scales)
        new_width = src_width * scale
        new_height = src_height * scale

    return max(_round_half_up(new_width), 1), max(_round_half_up(new_height), 1)


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def _normalize_mode(image: Image.Image) -> Image.Image:
    """Return a detached copy in a mode every transform supports."""
    if image.mode in _DIRECT_MODES:
        return image.copy()
    if image.mode in ("LA", "PA") or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


class PillowRaster(RasterImage):
    """Mutable wrapper around a Pillow image."""

    def __init__(self, image: Image.Image) -> None:
        self._image = image

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def crop(self, left: int, top: int, right: int, bottom: int) -> "PillowRaster":
        src_width, src_height = self._image.size
        box = (
            max(0, min(left, src_width)),
            max(0, min(top, src_height)),
            max(0, min(right, src_width)),
            max(0, min(bottom, src_height)),
        )

        if box[2] <= box[0] or box[3] <= box[1]:
            logger.warning(
                "Ignoring crop outside of image bounds",
                extra={"crop": [left, top, right, bottom], "size": [src_width, src_height]},
            )
            return self

        self._image = self._image.crop(box)
        return self

    def resize(self, width: int, height: int, flags: int) -> "PillowRaster":
        if flags & BIT_EXACT:
            self.resize(width, height, BIT_FILL)
            src_width, src_height = self._image.size
            left = _round_half_up((src_width - width) / 2)
            top = _round_half_up((src_height - height) / 2)
            return self.crop(left, top, left + width, top + height)

        new_size = calculate_size(*self._image.size, width, height, flags)
        if new_size != self._image.size:
            self._image = self._image.resize(new_size, Image.Resampling.LANCZOS)
        return self

    def sharpen(self) -> "PillowRaster":
        if self._image.mode == "RGBA":
            alpha = self._image.getchannel("A")
            sharpened = self._image.convert("RGB").filter(SHARPEN_KERNEL)
            sharpened.putalpha(alpha)
            self._image = sharpened
        else:
            self._image = self._image.filter(SHARPEN_KERNEL)
        return self

    def save(self, path: Path, quality: int | None) -> None:
        fmt = Image.registered_extensions().get(path.suffix.lower())
        if fmt is None or fmt not in Image.SAVE:
            logger.warning("Unsupported output format", extra={"path": str(path)})
            raise ImageDecodeError(
                message=f"Unsupported output extension '{path.suffix}'",
                details={"path": str(path)},
            )

        image = self._image
        options: dict[str, int] = {}

        if fmt == "JPEG":
            if image.mode == "RGBA":
                background = Image.new("RGB", image.size, (255, 255, 255))
                background.paste(image, mask=image.getchannel("A"))
                image = background
            if quality is not None:
                options["quality"] = max(0, min(quality, 100))
        elif fmt == "PNG":
            if quality is not None:
                options["compress_level"] = max(0, min(quality, 9))
        elif fmt in ("WEBP", "AVIF"):
            if quality is not None:
                options["quality"] = max(0, min(quality, 100))

        try:
            image.save(path, format=fmt, **options)
        except (KeyError, ValueError) as exc:
            logger.warning(
                "Unable to encode image",
                extra={"path": str(path), "format": fmt, "error": str(exc)},
            )
            raise ImageDecodeError(
                message=f"Unable to write image as {fmt}",
                details={"path": str(path), "format": fmt},
            ) from exc


class PillowCodec(ImageCodec):
    """Image codec built on Pillow."""

    def open(self, path: Path) -> PillowRaster:
        try:
            with Image.open(path) as img:
                img.load()
                return PillowRaster(_normalize_mode(img))
        except FileNotFoundError as exc:
            raise NotFoundError(
                message="Image file not found",
                details={"path": str(path)},
            ) from exc
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            logger.warning(
                "Unable to decode image",
                extra={"path": str(path), "error": str(exc)},
            )
            raise ImageDecodeError(
                message="Unknown type of file",
                details={"path": str(path)},
            ) from exc

    def from_bytes(self, data: bytes) -> PillowRaster:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                return PillowRaster(_normalize_mode(img))
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
            raise ImageDecodeError(
                message="Unknown type of file",
                details={"size": len(data)},
            ) from exc

    def probe_dimensions(self, path: Path) -> tuple[int, int] | None:
        try:
            with Image.open(path) as img:
                width, height = img.size
        except (OSError, Image.DecompressionBombError) as exc:
            logger.debug(
                "Unable to read image dimensions",
                extra={"path": str(path), "error": str(exc)},
            )
            return None

        if width <= 0 or height <= 0:
            return None
        return width, height
